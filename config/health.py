import logging

from django.db import DatabaseError, connection
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.response import Response

logger = logging.getLogger("silo.health")


@extend_schema(
    tags=["Health Endpoint"],
    summary="Health check",
    description="Reports whether the service can reach its database.",
    examples=[OpenApiExample("Healthy", value={"status": "ok", "database": "ok"})],
)
@api_view(["GET"])
@permission_classes([])
@throttle_classes([])
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.exception("health.database_unreachable", extra={"event": "health.database_unreachable"})
        return Response({"status": "degraded", "database": "unavailable"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({"status": "ok", "database": "ok"})
