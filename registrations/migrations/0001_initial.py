# Generated manually for the initial registration schema

from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Registration',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('reg_no', models.CharField(editable=False, max_length=20, unique=True)),
                ('athlete_name', models.CharField(max_length=200)),
                ('father_name', models.CharField(max_length=200)),
                ('mother_name', models.CharField(max_length=200)),
                ('dob', models.DateField()),
                ('gender', models.CharField(choices=[('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')], max_length=10)),
                ('district', models.CharField(max_length=100)),
                ('mobile', models.CharField(max_length=15)),
                ('email', models.EmailField(max_length=254)),
                ('aadhaar_number', models.CharField(max_length=12)),
                ('address', models.TextField()),
                ('pin', models.CharField(max_length=6)),
                ('pan_number', models.CharField(blank=True, max_length=10, null=True)),
                ('academy_name', models.CharField(blank=True, max_length=200, null=True)),
                ('coach_name', models.CharField(blank=True, max_length=200, null=True)),
                ('photo', models.URLField(blank=True, max_length=500, null=True)),
                ('certificate', models.URLField(blank=True, max_length=500, null=True)),
                ('resident_certificate', models.URLField(blank=True, max_length=500, null=True)),
                ('aadhaar_front_photo', models.URLField(blank=True, max_length=500, null=True)),
                ('aadhaar_back_photo', models.URLField(blank=True, max_length=500, null=True)),
                ('payment', models.BooleanField(default=False, help_text='Set once the Razorpay signature has been verified')),
                ('amount', models.PositiveIntegerField(default=0)),
                ('currency', models.CharField(default='INR', max_length=3)),
                ('razorpay_order_id', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('razorpay_payment_id', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Registration',
                'verbose_name_plural': 'Registrations',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='EnrollmentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_value', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Enrollment Sequence',
                'verbose_name_plural': 'Enrollment Sequence',
            },
        ),
        migrations.CreateModel(
            name='AthleteEnrollment',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('enrollment_number', models.CharField(max_length=20, unique=True)),
                ('card_url', models.URLField(blank=True, max_length=500, null=True)),
                ('card_sent_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('registration', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='enrollment', to='registrations.registration')),
            ],
            options={
                'verbose_name': 'Athlete Enrollment',
                'verbose_name_plural': 'Athlete Enrollments',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PaymentActivity',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('reference', models.CharField(db_index=True, help_text='Razorpay order id', max_length=100)),
                ('payment_id', models.CharField(blank=True, max_length=100, null=True)),
                ('status', models.CharField(choices=[('initiated', 'Initiated'), ('success', 'Success')], db_index=True, max_length=20)),
                ('amount', models.PositiveIntegerField(default=0)),
                ('currency', models.CharField(default='INR', max_length=3)),
                ('gateway', models.CharField(default='razorpay', max_length=20)),
                ('message', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('registration', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payment_activities', to='registrations.registration')),
            ],
            options={
                'verbose_name': 'Payment Activity',
                'verbose_name_plural': 'Payment Activities',
                'ordering': ['-created_at'],
            },
        ),
    ]
