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
            name='Folder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent_folder', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='subfolders', to='files.folder')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='folders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Folder',
                'verbose_name_plural': 'Folders',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', '-created_at'], name='folders_user_recent_idx')],
                'constraints': [models.CheckConstraint(condition=models.Q(('name', ''), _negated=True), name='folders_name_not_empty')],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Generated storage key', max_length=1024)),
                ('original_name', models.CharField(help_text='Display name supplied by the user', max_length=255)),
                ('file_type', models.CharField(default='application/octet-stream', max_length=255)),
                ('file_size', models.BigIntegerField(help_text='File size in bytes')),
                ('storage_path', models.CharField(help_text='Key of the blob in storage', max_length=1024)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('folder', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='files', to='files.folder')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['user', 'folder', '-created_at'], name='files_user_folder_recent_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('storage_path',), name='files_storage_path_unique'),
                    models.CheckConstraint(condition=models.Q(('storage_path', models.F('name'))), name='files_storage_path_matches_name'),
                    models.CheckConstraint(condition=models.Q(('file_size__gte', 0)), name='files_size_non_negative'),
                ],
            },
        ),
    ]
