# Generated manually for the banking app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BankConnection',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('requisition_id', models.CharField(max_length=100, unique=True)),
                ('institution_id', models.CharField(max_length=100)),
                ('institution_name', models.CharField(blank=True, max_length=200)),
                ('reference', models.CharField(max_length=100, unique=True)),
                ('status', models.CharField(choices=[('CR', 'Created'), ('GC', 'Giving consent'), ('UA', 'Undergoing authentication'), ('RJ', 'Rejected'), ('SA', 'Selecting accounts'), ('GA', 'Granting access'), ('LN', 'Linked'), ('EX', 'Expired')], default='CR', max_length=2)),
                ('link', models.URLField(blank=True, max_length=500)),
                ('account_ids', models.JSONField(blank=True, default=list)),
                ('last_synced_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bank_connections', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'bank_connections',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='bankconnection',
            index=models.Index(fields=['user', 'status'], name='bank_conn_user_status_idx'),
        ),
    ]
