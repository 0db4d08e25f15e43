import uvicorn

from assistant_backend.app import create_app
from assistant_backend.core.config import get_settings

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
