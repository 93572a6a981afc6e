from rest_framework import serializers

from clinic.serializers.accounts import PatientDetailsSerializer, clean_text
from clinic.services.codes import is_valid_patient_code


class AppointmentCreateSerializer(PatientDetailsSerializer):
    """Booking form.

    With ``patientCode`` the demographics default to the stored patient
    record and every field is optional; without it the form must describe
    a new patient in full.
    """
    REQUIRED_FOR_NEW_PATIENT = ('name', 'age', 'sex', 'phone_number', 'knee_condition', 'rehab_duration')

    doctorId = serializers.IntegerField(min_value=1, source='doctor_id')
    appointmentDate = serializers.DateTimeField(source='appointment_date')
    patientCode = serializers.CharField(max_length=6, required=False, allow_blank=True, source='patient_code')
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def get_fields(self):
        fields = super().get_fields()
        for f in ('age', 'sex', 'phoneNumber', 'kneeCondition', 'rehabDuration'):
            fields[f].required = False
        return fields

    def validate_name(self, v):
        return clean_text(v)

    def validate_patientCode(self, v):
        v = (v or '').strip().upper()
        if v and not is_valid_patient_code(v):
            raise serializers.ValidationError('Invalid patient code')
        return v

    def validate(self, attrs):
        if not attrs.get('patient_code'):
            attrs.pop('patient_code', None)
            missing = [f for f in self.REQUIRED_FOR_NEW_PATIENT if not attrs.get(f) and attrs.get(f) != 0]
            if missing:
                raise serializers.ValidationError({f: 'This field is required for a new patient.' for f in missing})
        return attrs
