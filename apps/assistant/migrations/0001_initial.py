# Generated manually for the assistant app

import uuid
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('ledger', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='FeedbackPattern',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('key', models.CharField(max_length=255, unique=True)),
                ('keywords', models.JSONField(default=list)),
                ('description', models.CharField(max_length=500)),
                ('occurrences', models.PositiveIntegerField(default=1)),
                ('confidence', models.FloatField(default=0.2)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('last_used', models.DateTimeField()),
                ('corrected_category', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='feedback_patterns', to='ledger.category')),
                ('original_category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='ledger.category')),
            ],
            options={
                'db_table': 'ai_feedback_patterns',
                'ordering': ['-last_used'],
            },
        ),
        migrations.AddIndex(
            model_name='feedbackpattern',
            index=models.Index(fields=['last_used'], name='ai_feedback_last_used_idx'),
        ),
    ]
