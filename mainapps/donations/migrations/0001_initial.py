import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('charities', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Donation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount_cents', models.PositiveBigIntegerField(help_text='Amount in minor currency units')),
                ('currency', models.CharField(choices=[('USD', 'US Dollar'), ('ZAR', 'South African Rand'), ('GBP', 'British Pound'), ('EUR', 'Euro')], default='USD', max_length=3)),
                ('status', models.CharField(choices=[('created', 'Created'), ('payment_pending', 'Payment Pending'), ('paid', 'Paid'), ('failed', 'Failed'), ('refunded', 'Refunded')], default='created', max_length=20)),
                ('message', models.TextField(blank=True, null=True)),
                ('donated_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('charity', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to='charities.charity')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-donated_at'],
                'indexes': [
                    models.Index(fields=['donor', '-donated_at'], name='donation_donor_date_idx'),
                    models.Index(fields=['charity', '-donated_at'], name='donation_charity_date_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount_cents__gt', 0)), name='donation_amount_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TaxCertificate',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('tax_year', models.CharField(help_text='e.g. 2024/2025', max_length=9)),
                ('currency', models.CharField(choices=[('USD', 'US Dollar'), ('ZAR', 'South African Rand'), ('GBP', 'British Pound'), ('EUR', 'Euro')], default='USD', max_length=3)),
                ('total_amount_cents', models.PositiveBigIntegerField(default=0)),
                ('certificate_url', models.CharField(blank=True, max_length=500, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('available', 'Available')], default='pending', max_length=10)),
                ('issued_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('charity', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tax_certificates', to='charities.charity')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tax_certificates', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-tax_year', '-created_at'],
                'unique_together': {('donor', 'charity', 'tax_year')},
            },
        ),
    ]
