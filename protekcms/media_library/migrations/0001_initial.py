# Generated manually

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import protekcms.media_library.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Media',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file', models.ImageField(height_field='height', upload_to=protekcms.media_library.models.media_upload_to, width_field='width')),
                ('name', models.CharField(help_text='Original file name', max_length=255)),
                ('type', models.CharField(choices=[('image', 'Image')], default='image', max_length=20)),
                ('size', models.PositiveIntegerField(default=0)),
                ('mime_type', models.CharField(max_length=100)),
                ('alt', models.CharField(blank=True, max_length=255, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('width', models.PositiveIntegerField(blank=True, null=True)),
                ('height', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='media', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'media',
                'db_table': 'media',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
