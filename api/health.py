"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json
import os

from brokerage.utils.config import is_digital_authorization_required


def health_payload() -> dict:
    """Liveness plus the publication settings this instance is running with."""
    return {
        "status": "ok",
        "service": "brokerage-backoffice",
        "storage_configured": bool(
            os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        ),
        "digital_authorization_required": is_digital_authorization_required(),
    }


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(health_payload()).encode('utf-8'))

    def do_POST(self):
        """Same as GET for health checks."""
        self.do_GET()
