import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('submissions', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('domain', models.CharField(blank=True, max_length=30)),
                ('amount', models.IntegerField()),
                ('reference_kind', models.CharField(choices=[('award', 'Points Awarded'), ('revoke', 'Points Revoked'), ('adjust', 'Valuation Adjustment'), ('purchase', 'Purchase')], max_length=20)),
                ('logical_version', models.PositiveIntegerField(blank=True, null=True)),
                ('description', models.CharField(blank=True, max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('submission', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ledger_entries', to='submissions.submission')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Ledger Entry',
                'verbose_name_plural': 'Ledger Entries',
                'db_table': 'points_ledger_entries',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['user', 'created_at'], name='points_ledg_user_id_3b9c1e_idx'),
                    models.Index(fields=['submission', 'reference_kind'], name='points_ledg_submiss_7a2d4f_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('submission', 'logical_version'), name='unique_submission_ledger_version'),
                ],
            },
        ),
    ]
