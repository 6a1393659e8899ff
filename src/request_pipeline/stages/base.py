"""
Stage contract for the request pipeline.

A stage participates in three phases of every attempt:

    on_build     before the transport is called; may mutate the request,
                 or raise RequestFailure to fail the attempt unsent
    on_response  after a successful response; may replace it
    on_error     after a failure; may pass, resolve or reject

on_error outcomes:
    None             pass the failure to the next stage unchanged
    Response         resolve: the logical call succeeds with this response
    ClassifiedError  reject: the logical call fails with this error

The first stage returning something other than None ends the error phase.
"""

from typing import TYPE_CHECKING, Optional, Union

from request_pipeline.errors.exceptions import ClassifiedError, RequestFailure
from request_pipeline.models import Request, Response

if TYPE_CHECKING:
    from request_pipeline.pipeline import RequestPipeline

ErrorOutcome = Optional[Union[Response, ClassifiedError]]


class Stage:
    """
    Base class for pipeline stages.

    Every hook defaults to a no-op so stages only override the phases they
    take part in.
    """

    name: str = "stage"

    def attach(self, pipeline: "RequestPipeline") -> None:
        """Called once when the pipeline is constructed."""

    async def on_build(self, request: Request) -> None:
        return None

    async def on_response(self, request: Request, response: Response) -> Response:
        return response

    async def on_error(self, request: Request, failure: RequestFailure) -> ErrorOutcome:
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["Stage", "ErrorOutcome"]
