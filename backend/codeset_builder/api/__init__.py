"""API routers for the Lab Code Set Builder."""

from codeset_builder.api.labtest_search import method_not_allowed_handler, validation_error_handler
from codeset_builder.api.labtest_search import router as labtest_search_router

__all__ = [
    "labtest_search_router",
    "method_not_allowed_handler",
    "validation_error_handler",
]
