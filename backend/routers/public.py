import os

from fastapi import APIRouter, Request

router = APIRouter()
EVENT_NAME = os.environ.get("EVENT_NAME", "HackAbhigna")


@router.get("/")
def root():
    return {"message": f"{EVENT_NAME} API is running"}


@router.get("/health")
def health_check():
    return {"status": "healthy"}


@router.get("/routes")
def list_routes(request: Request):
    routes = []
    for route in request.app.routes:
        methods = sorted(getattr(route, "methods", None) or [])
        if not methods:
            continue
        routes.append({"path": route.path, "methods": methods})
    return sorted(routes, key=lambda item: item["path"])
