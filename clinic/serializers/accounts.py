import bleach
from rest_framework import serializers

from clinic.models import SEX_CHOICES


def clean_text(v):
    return bleach.clean((v or '').strip(), tags=set(), strip=True)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=150)
    password = serializers.CharField(write_only=True)

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class StaffCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=150)
    password = serializers.CharField(write_only=True, min_length=6, max_length=128)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v


class HospitalAdminCreateSerializer(StaffCreateSerializer):
    totalTests = serializers.IntegerField(min_value=1, source='total_tests')


class DoctorCreateSerializer(StaffCreateSerializer):
    gender = serializers.ChoiceField(choices=SEX_CHOICES)


class PatientDetailsSerializer(serializers.Serializer):
    """Demographics shared by the patient record and the appointment snapshot."""
    age = serializers.IntegerField(min_value=0, max_value=150)
    sex = serializers.ChoiceField(choices=SEX_CHOICES)
    phoneNumber = serializers.CharField(max_length=32, source='phone_number')
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    kneeCondition = serializers.CharField(max_length=255, source='knee_condition')
    otherMorbidities = serializers.CharField(max_length=255, required=False, allow_blank=True,
                                             source='other_morbidities')
    rehabDuration = serializers.CharField(max_length=64, source='rehab_duration')
    mriImage = serializers.CharField(required=False, allow_blank=True, source='mri_image')

    def validate_address(self, v):
        return clean_text(v)

    def validate_kneeCondition(self, v):
        return clean_text(v)

    def validate_otherMorbidities(self, v):
        return clean_text(v) or 'None'

    def validate_phoneNumber(self, v):
        return clean_text(v)


class PatientCreateSerializer(PatientDetailsSerializer):
    name = serializers.CharField(max_length=255)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Name is required')
        return v
