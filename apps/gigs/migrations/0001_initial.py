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
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('category', models.CharField(choices=[('main', 'Main'), ('social', 'Social Engagement'), ('surveys', 'Surveys'), ('testing', 'App Testing'), ('ai', 'AI Labeling')], max_length=10)),
                ('url', models.URLField(blank=True, default='')),
                ('reward', models.DecimalField(decimal_places=2, max_digits=10)),
                ('min_tier', models.CharField(choices=[('member', 'Member'), ('silver', 'Silver'), ('bronze', 'Bronze'), ('diamond', 'Diamond'), ('gold', 'Gold'), ('vip', 'VIP')], default='member', max_length=10)),
                ('min_duration', models.PositiveIntegerField(default=150, help_text='Seconds on task before submission')),
                ('is_active', models.BooleanField(default=True)),
                ('is_orientation', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['category', 'id'],
                'indexes': [models.Index(fields=['category', 'is_active'], name='gigs_task_categor_8e2b4f_idx')],
            },
        ),
        migrations.CreateModel(
            name='UserTask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='pending', max_length=10)),
                ('started_at', models.DateTimeField()),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True, default='')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('task', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='attempts', to='gigs.task')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='user_tasks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-started_at'],
                'indexes': [models.Index(fields=['user', 'started_at'], name='gigs_userta_user_id_6d1c0a_idx')],
            },
        ),
    ]
