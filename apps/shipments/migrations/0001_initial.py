import django.core.serializers.json
import django.core.validators
import django.utils.timezone
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Shipment",
            fields=[
                ("id",              models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("reference",       models.CharField(db_index=True, max_length=40)),
                ("tracking_number", models.CharField(blank=True, db_index=True, max_length=40)),
                ("shipment_type", models.CharField(
                    choices=[
                        ("import",        "Import"),
                        ("export",        "Export"),
                        ("local",         "Local"),
                        ("international", "International"),
                    ],
                    default="local",
                    max_length=15,
                )),
                ("status", models.CharField(
                    choices=[
                        ("draft",      "Draft"),
                        ("confirmed",  "Confirmed"),
                        ("in_transit", "In Transit"),
                        ("delivered",  "Delivered"),
                        ("cancelled",  "Cancelled"),
                        ("delayed",    "Delayed"),
                    ],
                    default="draft",
                    max_length=12,
                )),
                ("customer",        models.CharField(blank=True, max_length=120)),
                ("carrier",         models.CharField(blank=True, max_length=64)),
                ("carrier_name",    models.CharField(blank=True, max_length=120)),
                ("origin",          models.CharField(max_length=255)),
                ("destination",     models.CharField(max_length=255)),
                ("lines",           models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("total_weight",    models.DecimalField(decimal_places=6, default=0, max_digits=18)),
                ("scheduled_date",          models.DateTimeField(blank=True, null=True)),
                ("estimated_delivery_date", models.DateTimeField(blank=True, null=True)),
                ("actual_delivery_date",    models.DateTimeField(blank=True, null=True)),
                ("base_price",   models.DecimalField(decimal_places=2, default=0, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("distance_km",  models.DecimalField(decimal_places=2, default=0, max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("extra_fees",   models.DecimalField(decimal_places=2, default=0, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("customs_fees", models.DecimalField(decimal_places=2, default=0, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("tariff_zone", models.CharField(
                    choices=[
                        ("local",         "Local"),
                        ("national",      "National"),
                        ("europe",        "Europe"),
                        ("international", "International"),
                    ],
                    default="national",
                    max_length=15,
                )),
                ("service_level", models.CharField(
                    choices=[
                        ("economic", "Economic"),
                        ("standard", "Standard"),
                        ("express",  "Express"),
                        ("priority", "Priority"),
                    ],
                    default="standard",
                    max_length=10,
                )),
                ("total_price", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("notes",       models.TextField(blank=True)),
                ("created_at",  models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at",  models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="shipments_s_status_3f1c2a_idx"),
                    models.Index(fields=["created_at"], name="shipments_s_created_8d0e4b_idx"),
                ],
            },
        ),
    ]
