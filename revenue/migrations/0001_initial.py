import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Settlement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('period_month', models.CharField(max_length=7)),
                ('total_sales', models.DecimalField(decimal_places=2, max_digits=14)),
                ('tenant_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('operator_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('platform_share', models.DecimalField(decimal_places=2, max_digits=14)),
                ('bank_account', models.CharField(max_length=100)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed')], default='pending', max_length=10)),
                ('transfer_id', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='settlements', to='tenants.tenant')),
            ],
            options={
                'ordering': ['-period_month', '-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('tenant', 'period_month'), name='settlement_unique_tenant_period'),
                ],
            },
        ),
    ]
