"""Terminal stage: turns every unresolved failure into a ClassifiedError."""

from request_pipeline.errors.classifiers import classify_failure
from request_pipeline.errors.exceptions import RequestFailure
from request_pipeline.models import Request
from request_pipeline.stages.base import ErrorOutcome, Stage


class ClassificationStage(Stage):
    """
    Always rejects.

    Must be registered last; the pipeline refuses to build otherwise. Has
    no side effects, so it takes no sink.
    """

    name = "classification"

    async def on_error(self, request: Request, failure: RequestFailure) -> ErrorOutcome:
        return classify_failure(failure)


__all__ = ["ClassificationStage"]
