"""
FastAPI dependency providers.

Services are built once in the app lifespan and kept on app.state.
"""
from fastapi import Request

from llm_compare.services.results import ResultStore
from llm_compare.services.streaming import StreamRelay


def get_store(request: Request) -> ResultStore:
    return request.app.state.store


def get_relay(request: Request) -> StreamRelay:
    return request.app.state.relay
