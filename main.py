import uvicorn

from dailylect.app import create_app
from dailylect.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="debug" if settings.DEBUG else "info")
