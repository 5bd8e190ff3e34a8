"""
Custom exceptions for the API
"""
from fastapi import HTTPException


class DataServiceNotInitialized(HTTPException):
    def __init__(self):
        super().__init__(status_code=503, detail="Data service not initialized")


class SourceNotFoundError(HTTPException):
    def __init__(self, key: str):
        super().__init__(status_code=404, detail=f"Unknown source: {key}")
