import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


SEX_CHOICES = [('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')]


def ledger_fields():
    return [
        ('total_tests', models.IntegerField(default=0)),
        ('tests_allocated', models.IntegerField(default=0)),
        ('tests_done', models.IntegerField(default=0)),
        ('tests_remaining', models.IntegerField(default=0)),
    ]


def snapshot_fields():
    return [
        ('age', models.PositiveIntegerField()),
        ('sex', models.CharField(choices=SEX_CHOICES, max_length=10)),
        ('phone_number', models.CharField(max_length=32)),
        ('address', models.CharField(blank=True, max_length=255)),
        ('knee_condition', models.CharField(max_length=255)),
        ('other_morbidities', models.CharField(default='None', max_length=255)),
        ('rehab_duration', models.CharField(max_length=64)),
        ('mri_image', models.TextField(blank=True)),
    ]


def _id():
    return ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID'))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Person',
            fields=[
                _id(),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('name', models.CharField(max_length=255)),
                ('role', models.CharField(choices=[('patient', 'Patient'), ('doctor', 'Doctor'), ('hospital_admin', 'Hospital admin'), ('super_admin', 'Super admin')], db_index=True, max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='SuperAdmin',
            fields=[
                _id(),
                *ledger_fields(),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('person', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='super_admin', to=settings.AUTH_USER_MODEL)),
            ],
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='HospitalAdmin',
            fields=[
                _id(),
                *ledger_fields(),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('person', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='hospital_admin', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='hospital_centres', to='clinic.superadmin')),
            ],
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='Doctor',
            fields=[
                _id(),
                *ledger_fields(),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('gender', models.CharField(choices=SEX_CHOICES, max_length=10)),
                ('person', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='doctor', to=settings.AUTH_USER_MODEL)),
                ('hospital_admin', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='doctors', to='clinic.hospitaladmin')),
            ],
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                _id(),
                *snapshot_fields(),
                ('patient_code', models.CharField(max_length=6, unique=True)),
                ('person', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='patient', to=settings.AUTH_USER_MODEL)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='patients', to='clinic.doctor')),
            ],
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                _id(),
                *snapshot_fields(),
                ('patient_code', models.CharField(blank=True, db_index=True, max_length=6)),
                ('appointment_date', models.DateTimeField()),
                ('person', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to=settings.AUTH_USER_MODEL)),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='clinic.doctor')),
            ],
            options={
                'indexes': [models.Index(fields=['doctor', 'appointment_date'], name='clinic_appt_doctor_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='KneeTest',
            fields=[
                _id(),
                ('puck_id', models.CharField(max_length=64)),
                ('leg_tested', models.CharField(choices=[('Left', 'Left'), ('Right', 'Right')], max_length=5)),
                ('leg_length', models.FloatField(blank=True, null=True)),
                ('test_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('max_range_of_motion', models.FloatField()),
                ('max_linear_displacement', models.FloatField()),
                ('max_angular_displacement', models.FloatField()),
                ('time_series_data', models.JSONField(blank=True, default=list)),
                ('doctor_notes', models.TextField(blank=True, default='')),
                ('files_processed', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tests', to='clinic.patient')),
                ('doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='tests', to='clinic.doctor')),
            ],
            options={
                'db_table': 'clinic_test',
                'indexes': [models.Index(fields=['patient', 'test_date'], name='clinic_test_patient_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='RawData',
            fields=[
                _id(),
                ('puck_id', models.CharField(db_index=True, max_length=64)),
                ('range_of_motion', models.FloatField()),
                ('linear_displacement', models.FloatField()),
                ('angular_displacement', models.FloatField()),
                ('time_series_data', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                _id(),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.CharField(blank=True, max_length=64, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('person', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='clinic_audit_action_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='clinic_audit_object_idx'),
                ],
            },
        ),
    ]
