from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('plugins', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Space',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('icon', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Space',
                'verbose_name_plural': 'Spaces',
                'ordering': ['name', 'id'],
            },
        ),
        migrations.CreateModel(
            name='SpaceUser',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_owner', models.BooleanField(default=False)),
                ('can_edit', models.BooleanField(default=False)),
                ('can_invite', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('space', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='workspaces.space')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='space_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Space User',
                'verbose_name_plural': 'Space Users',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='SpacePlugin',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('left', models.PositiveSmallIntegerField(default=0)),
                ('top', models.PositiveSmallIntegerField(default=0)),
                ('width', models.PositiveSmallIntegerField(default=1)),
                ('height', models.PositiveSmallIntegerField(default=1)),
                ('plugin', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='placements', to='plugins.publishedplugin')),
                ('space', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='placements', to='workspaces.space')),
            ],
            options={
                'verbose_name': 'Space Plugin',
                'verbose_name_plural': 'Space Plugins',
                'ordering': ['top', 'left', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='spaceuser',
            constraint=models.UniqueConstraint(fields=('space', 'user'), name='unique_space_user'),
        ),
        migrations.AddConstraint(
            model_name='spaceuser',
            constraint=models.UniqueConstraint(condition=models.Q(('is_owner', True)), fields=('space',), name='one_owner_per_space'),
        ),
        migrations.AddConstraint(
            model_name='spaceplugin',
            constraint=models.UniqueConstraint(fields=('space', 'plugin'), name='unique_space_plugin'),
        ),
    ]
