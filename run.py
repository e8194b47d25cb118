#  Secret Board - Entry Point
#
#  Launches the FastAPI server via uvicorn.
#
#  Depends on: secretboard/app.py, secretboard/config.py, secretboard/logging_config.py
#  Used by:    (run directly)

import uvicorn

from secretboard.config import HOST, PORT, cfg
from secretboard.logging_config import setup_logging


def main():
    setup_logging(
        level=cfg("server.log_level", "INFO"),
        fmt=cfg("server.log_format", "json"),
    )

    uvicorn.run(
        "secretboard.app:app",
        host=HOST,
        port=PORT,
        reload=cfg("server.reload", False),
    )


if __name__ == "__main__":
    main()
