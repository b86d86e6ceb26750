import django.utils.timezone
from django.db import migrations, models

PACKAGE_STATUS_CHOICES = [
    ("registered",       "Registered"),
    ("processing",       "Processing"),
    ("in_transit",       "In Transit"),
    ("out_for_delivery", "Out for Delivery"),
    ("delivered",        "Delivered"),
    ("delayed",          "Delayed"),
    ("exception",        "Exception"),
    ("returned",         "Returned"),
    ("lost",             "Lost"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TrackingEvent",
            fields=[
                ("id",               models.BigAutoField(auto_created=True, primary_key=True, serialize=False)),
                ("shipment_id",      models.UUIDField(db_index=True)),
                ("tracking_number",  models.CharField(blank=True, db_index=True, max_length=40)),
                ("sequence",         models.PositiveIntegerField()),
                ("timestamp",        models.DateTimeField(default=django.utils.timezone.now)),
                ("status",           models.CharField(choices=PACKAGE_STATUS_CHOICES, max_length=20)),
                ("location_address", models.CharField(blank=True, max_length=255)),
                ("latitude",         models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("longitude",        models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("description",      models.CharField(blank=True, max_length=255)),
                ("is_notified",      models.BooleanField(default=False)),
                ("recorded_at",      models.DateTimeField(default=django.utils.timezone.now, editable=False)),
            ],
            options={
                "ordering": ["timestamp", "sequence"],
                "constraints": [
                    models.UniqueConstraint(fields=("shipment_id", "sequence"),
                                            name="tracking_event_sequence_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TrackingAggregate",
            fields=[
                ("shipment_id",      models.UUIDField(primary_key=True, serialize=False)),
                ("tracking_number",  models.CharField(blank=True, db_index=True, max_length=40)),
                ("status",           models.CharField(choices=PACKAGE_STATUS_CHOICES, max_length=20)),
                ("current_location", models.CharField(blank=True, max_length=255)),
                ("latitude",         models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("longitude",        models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("progress",         models.PositiveSmallIntegerField(default=0)),
                ("event_count",      models.PositiveIntegerField(default=0)),
                ("last_updated",     models.DateTimeField()),
            ],
        ),
    ]
