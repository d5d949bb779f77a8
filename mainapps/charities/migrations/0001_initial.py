import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Charity',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending_review', 'Pending Review'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('suspended', 'Suspended')], db_index=True, default='pending_review', max_length=20)),
                ('public_name', models.CharField(max_length=200)),
                ('legal_name', models.CharField(blank=True, max_length=255, null=True)),
                ('registration_number', models.CharField(blank=True, max_length=100, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('website', models.URLField(blank=True, null=True)),
                ('contact_email', models.EmailField(blank=True, max_length=254, null=True)),
                ('contact_phone', models.CharField(blank=True, max_length=30, null=True)),
                ('currency', models.CharField(choices=[('USD', 'US Dollar'), ('ZAR', 'South African Rand'), ('GBP', 'British Pound'), ('EUR', 'Euro')], default='USD', max_length=3)),
                ('photo_url', models.CharField(blank=True, max_length=500, null=True)),
                ('rejection_reason', models.TextField(blank=True, null=True)),
                ('admin_notes', models.TextField(blank=True, null=True)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_charities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Charity',
                'verbose_name_plural': 'Charities',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status', '-created_at'], name='charity_status_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='CharityUser',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('owner', 'Owner'), ('admin', 'Admin'), ('viewer', 'Viewer')], default='owner', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('charity', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='charities.charity')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='charity_links', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'unique_together': {('charity', 'user')},
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('role', 'owner')), fields=('charity',), name='charity_single_owner'),
                    models.UniqueConstraint(condition=models.Q(('role', 'owner')), fields=('user',), name='user_owns_single_charity'),
                ],
            },
        ),
    ]
