import os
import sys

import uvicorn

# Ensure project root is in sys.path
sys.path.insert(0, os.getcwd())

from config.settings import API_HOST, API_PORT  # noqa: E402

if __name__ == "__main__":
    print("🚀 Starting Report Export API...")
    uvicorn.run("api.main:app", host=API_HOST, port=API_PORT, reload=True)
