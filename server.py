#!/usr/bin/env python3
import logging, os

import uvicorn
from dotenv import load_dotenv

load_dotenv()
PORT = int(os.getenv("PORT", "3000"))

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

if __name__ == "__main__":
    logging.getLogger(__name__).info("Todo app running on port %d", PORT)
    uvicorn.run("app:app", host="0.0.0.0", port=PORT)
