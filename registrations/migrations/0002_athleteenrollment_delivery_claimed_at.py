# Claim marker so only one card delivery runs per enrollment at a time

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('registrations', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='athleteenrollment',
            name='delivery_claimed_at',
            field=models.DateTimeField(blank=True, help_text='Set while a card delivery is running; cleared when it ends', null=True),
        ),
    ]
