import bleach
from rest_framework import serializers

from clinic.models import KneeTest


class TimeSeriesPointSerializer(serializers.Serializer):
    time = serializers.FloatField()
    rangeOfMotion = serializers.FloatField()
    linearDisplacement = serializers.FloatField()
    angularDisplacement = serializers.FloatField()


class KneeTestCreateSerializer(serializers.Serializer):
    appointmentId = serializers.IntegerField(min_value=1, source='appointment_id')
    puckId = serializers.CharField(max_length=64, source='puck_id')
    legTested = serializers.ChoiceField(choices=KneeTest.LEG_CHOICES, source='leg_tested')
    legLength = serializers.FloatField(required=False, allow_null=True, min_value=0, source='leg_length')
    testDate = serializers.DateTimeField(required=False, source='test_date')
    maxRangeOfMotion = serializers.FloatField(required=False, source='max_range_of_motion')
    maxLinearDisplacement = serializers.FloatField(required=False, source='max_linear_displacement')
    maxAngularDisplacement = serializers.FloatField(required=False, source='max_angular_displacement')
    timeSeriesData = TimeSeriesPointSerializer(many=True, required=False, source='time_series_data')
    doctorNotes = serializers.CharField(required=False, allow_blank=True, max_length=5000, source='doctor_notes')
    filesProcessed = serializers.ListField(child=serializers.CharField(max_length=255), required=False,
                                           source='files_processed')

    def validate_puckId(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('puckId is required')
        return v

    def validate_doctorNotes(self, v):
        return bleach.clean((v or '').strip(), tags=set(), strip=True)


class RawDataCreateSerializer(serializers.Serializer):
    puckId = serializers.CharField(max_length=64, source='puck_id')
    rangeOfMotion = serializers.FloatField(source='range_of_motion')
    linearDisplacement = serializers.FloatField(source='linear_displacement')
    angularDisplacement = serializers.FloatField(source='angular_displacement')
    timeSeriesData = TimeSeriesPointSerializer(many=True, required=False, source='time_series_data')

    def validate_puckId(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('puckId is required')
        return v
