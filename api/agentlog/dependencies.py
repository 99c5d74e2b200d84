from typing import Annotated

from fastapi import Depends, Request

from agentlog.services.pipeline import LogPipeline


def get_pipeline(request: Request) -> LogPipeline:
    """The pipeline built in the application lifespan."""
    return request.app.state.pipeline


Pipeline = Annotated[LogPipeline, Depends(get_pipeline)]
