import uvicorn
from dotenv import load_dotenv

from infrastructure.logging import get_module_logger

load_dotenv()

from server import server  # noqa: E402

server_app = server.handler
logger = get_module_logger()


def main() -> None:
    """Run the notification service with uvicorn."""
    logger.info("application_launch")
    uvicorn.run(server_app, host="0.0.0.0", port=8000, proxy_headers=True)


if __name__ == "__main__":
    main()
