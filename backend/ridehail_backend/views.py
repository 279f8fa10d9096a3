import redis
from django.conf import settings
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from channels.layers import get_channel_layer

from rides.models import RideRequest
from rides.tasks import sweep_stale_rides_task


def _check_database():
    RideRequest.objects.count()


def _check_redis():
    redis.Redis.from_url(settings.REDIS_URL, socket_timeout=3).ping()


def _check_channels():
    if get_channel_layer() is None:
        return "no channel layer"


def _check_celery():
    # The beat schedule is useless unless the sweeper is registered
    if sweep_stale_rides_task.name not in sweep_stale_rides_task.app.tasks:
        return "sweeper task not registered"


SERVICE_CHECKS = (
    ("database", _check_database),
    ("redis", _check_redis),
    ("channels", _check_channels),
    ("celery", _check_celery),
)


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Health check endpoint for monitoring system status.

    Each backing service reports "healthy" or "unhealthy: <reason>"; any
    unhealthy service turns the whole response into a 503.
    """
    services = {}
    for name, check in SERVICE_CHECKS:
        try:
            problem = check()
        except Exception as e:
            problem = str(e)
        services[name] = f"unhealthy: {problem}" if problem else "healthy"

    healthy = all(state == "healthy" for state in services.values())

    return Response(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
