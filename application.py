"""
Elastic Beanstalk Entry Point
"""
import logging
import sys
import os

# Add the current directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Now build the Flask app
from backend.app import create_app
from backend.lib.price_plan_core.settings import load_settings

settings = load_settings()
logging.basicConfig(level=settings.log_level,
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
application = create_app(settings)

# For local testing
if __name__ == "__main__":
    application.run(debug=True)
