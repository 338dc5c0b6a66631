from django.conf import settings
from rest_framework.response import Response
from rest_framework.views import APIView


class HealthView(APIView):
    authentication_classes = []
    permission_classes = []

    def get(self, request):
        return Response(
            {
                "status": "ok",
                "service": "batchcost",
                "version": "v1",
                "volume_to_mass_factor": str(settings.BATCHCOST_VOLUME_TO_MASS_FACTOR),
                "strict_references": settings.BATCHCOST_STRICT_REFERENCES,
            }
        )
