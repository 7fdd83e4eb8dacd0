# Generated manually to create the submissions table
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Submission',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('name', models.TextField(help_text='Submitter name (HTML-escaped)')),
                ('email', models.TextField(help_text='Submitter email address (filtered to address-safe characters)')),
                ('message', models.TextField(help_text='Message content (HTML-escaped)')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='When the submission was received')),
            ],
            options={
                'verbose_name': 'Submission',
                'verbose_name_plural': 'Submissions',
                'db_table': 'users',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
