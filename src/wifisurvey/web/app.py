"""FastAPI service for driving survey-point measurements."""

from fastapi import FastAPI

from .. import __version__
from .routes import survey

app = FastAPI(title="wifisurvey", docs_url=None, redoc_url=None)

app.include_router(survey.router)


@app.get("/")
async def index():
    return {"service": "wifisurvey", "version": __version__}
