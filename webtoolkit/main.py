# Run from project root: uvicorn webtoolkit.main:app --reload

import logging

from fastapi import FastAPI

from webtoolkit.api.routes import router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Web Toolkit")
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("webtoolkit.main:app", host="127.0.0.1", port=8000, reload=False)
