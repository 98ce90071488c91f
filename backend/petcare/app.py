import logging
import os

from petcare.main import create_app

logger = logging.getLogger(__name__)

# Create Flask app
app = create_app()

if __name__ == "__main__":
    # Use PORT from environment (production) or default to 5000 (local dev)
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_ENV", "development") != "production"
    logger.info("Starting development server", extra={"context": {"port": port}})
    app.run(host="0.0.0.0", port=port, debug=debug)
