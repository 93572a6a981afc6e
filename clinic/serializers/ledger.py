from rest_framework import serializers


class HospitalAllocationSerializer(serializers.Serializer):
    hospitalAdminId = serializers.IntegerField(min_value=1, source='hospital_admin_id')
    # signed: a negative count takes tests back from the centre
    count = serializers.IntegerField()

    def validate_count(self, v):
        if v == 0:
            raise serializers.ValidationError('Invalid test count')
        return v


class DoctorAllocationSerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=1)
