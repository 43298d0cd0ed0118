import os

import uvicorn

from duit_assistant.logger import get_logging_config


def run() -> None:
    uvicorn.run(
        "duit_assistant.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    run()
