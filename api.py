"""Read-only status API for the running demo."""

from datetime import datetime
from typing import List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

app = FastAPI(title="Face Recognition Demo API", version="1.0.0")
app.state.loop = None


class IdentityResponse(BaseModel):
    label: str
    gender: str
    age: int
    avg_age: float
    avg_male_probability: float
    samples: int


class IdentitiesResponse(BaseModel):
    state: str
    matcher_ready: bool
    known_labels: int
    identities: List[IdentityResponse]
    timestamp: str


@app.get("/identities", response_model=IdentitiesResponse)
async def get_identities():
    """Smoothed age/gender for every identity recognized this session"""
    loop = app.state.loop
    if loop is None:
        raise HTTPException(status_code=503, detail="Frame loop not running")

    matcher = loop.matcher
    return IdentitiesResponse(
        state=loop.state.value,
        matcher_ready=matcher is not None,
        known_labels=len(matcher.labels) if matcher is not None else 0,
        identities=[
            IdentityResponse(
                label=summary.label,
                gender=summary.gender,
                age=summary.rounded_age,
                avg_age=summary.avg_age,
                avg_male_probability=summary.avg_male_probability,
                samples=summary.samples,
            )
            for summary in loop.identities.summaries()
        ],
        timestamp=datetime.now().isoformat()
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Face Recognition Demo API",
        "version": "1.0.0",
        "endpoints": {
            "/identities": "Tracked identities with smoothed age/gender",
            "/": "This help message"
        }
    }
