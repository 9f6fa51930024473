"""Central route registration."""
from litestar.types import ControllerRouterHandler

from s3clf.api.v1.convert_controller import ConvertController
from s3clf.api.v1.settings import read_settings
from s3clf.api.v1.stats import stats

def get_route_handlers() -> list[ControllerRouterHandler]:
    """Get all route handlers for the application."""
    return [
        ConvertController,
        read_settings,
        stats,
    ]
