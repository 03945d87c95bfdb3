import uvicorn
import logging
from core.settings import settings
from routes.main import app

# Set up logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

if __name__ == "__main__":
  logger.info(f"Signaling relay is running at http://localhost:{settings.PORT}")
  uvicorn.run(app, host=settings.HOST, port=settings.PORT)
