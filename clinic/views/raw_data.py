"""
Transient sensor measurements keyed by puck id.

Rows expire ``RAW_DATA_TTL_SECONDS`` after upload: expired rows are
never returned and are removed by ``manage.py purge_raw_data``.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import RawData
from ..permissions import IsDoctor
from ..serializers.records import RawDataCreateSerializer
from ..services.records import latest_raw_data, store_raw_data


def _format(raw: RawData) -> dict:
    return {
        'id': raw.id,
        'puckId': raw.puck_id,
        'rangeOfMotion': raw.range_of_motion,
        'linearDisplacement': raw.linear_displacement,
        'angularDisplacement': raw.angular_displacement,
        'timeSeriesData': raw.time_series_data,
        'createdAt': raw.created_at.isoformat(),
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctor])
def raw_data_create(request):
    s = RawDataCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    raw = store_raw_data(**s.validated_data)
    return Response({'ok': True, **_format(raw)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsDoctor])
def raw_data_detail(request, puck_id: str):
    if request.method == 'DELETE':
        deleted, _ = RawData.objects.filter(puck_id=puck_id).delete()
        return Response({'ok': True, 'deleted': deleted})
    raw = latest_raw_data(puck_id)
    if raw is None:
        raise NotFound('No live raw data for this puck')
    return Response(_format(raw))
