from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Character',
            fields=[
                ('id', models.BigIntegerField(primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'character',
                'verbose_name_plural': 'characters',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ItemGroup',
            fields=[
                ('id', models.IntegerField(primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('category_id', models.IntegerField(db_index=True, null=True)),
                ('published', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'item group',
                'verbose_name_plural': 'item groups',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ItemType',
            fields=[
                ('id', models.BigIntegerField(primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('description', models.TextField(blank=True)),
                ('group_id', models.IntegerField(db_index=True, null=True)),
                ('published', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'item type',
                'verbose_name_plural': 'item types',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='TypeAttribute',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('type_id', models.IntegerField(db_index=True)),
                ('attribute_id', models.IntegerField(db_index=True)),
                ('value_int', models.IntegerField(blank=True, null=True)),
                ('value_float', models.FloatField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'type attribute',
                'verbose_name_plural': 'type attributes',
                'ordering': ['type_id', 'attribute_id'],
                'unique_together': {('type_id', 'attribute_id')},
            },
        ),
        migrations.CreateModel(
            name='SkillPlan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('description', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'skill plan',
                'verbose_name_plural': 'skill plans',
                'ordering': ['name', 'id'],
            },
        ),
        migrations.CreateModel(
            name='CharacterAttributes',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('intelligence', models.SmallIntegerField(default=17)),
                ('perception', models.SmallIntegerField(default=17)),
                ('charisma', models.SmallIntegerField(default=17)),
                ('willpower', models.SmallIntegerField(default=17)),
                ('memory', models.SmallIntegerField(default=17)),
                ('bonus_remap_available', models.IntegerField(default=0)),
                ('synced_at', models.DateTimeField(auto_now_add=True)),
                ('character', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE,
                                                   related_name='attributes', to='planner.character')),
            ],
            options={
                'verbose_name': 'character attributes',
                'verbose_name_plural': 'character attributes',
            },
        ),
        migrations.CreateModel(
            name='CharacterImplant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type_id', models.IntegerField(db_index=True)),
                ('synced_at', models.DateTimeField(auto_now_add=True)),
                ('character', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                                related_name='implants', to='planner.character')),
            ],
            options={
                'verbose_name': 'character implant',
                'verbose_name_plural': 'character implants',
                'ordering': ['character', 'type_id'],
                'unique_together': {('character', 'type_id')},
            },
        ),
        migrations.CreateModel(
            name='CharacterSkill',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('skill_id', models.IntegerField(db_index=True)),
                ('skill_level', models.SmallIntegerField(default=0)),
                ('skillpoints_in_skill', models.IntegerField(default=0)),
                ('trained_skill_level', models.SmallIntegerField(default=0)),
                ('synced_at', models.DateTimeField(auto_now_add=True)),
                ('character', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                                related_name='skills', to='planner.character')),
            ],
            options={
                'verbose_name': 'character skill',
                'verbose_name_plural': 'character skills',
                'ordering': ['skill_id'],
                'unique_together': {('character', 'skill_id')},
            },
        ),
        migrations.CreateModel(
            name='SkillPlanEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('skill_id', models.IntegerField(db_index=True)),
                ('level', models.SmallIntegerField()),
                ('entry_type', models.CharField(choices=[('Planned', 'Planned'), ('Prerequisite', 'Prerequisite')],
                                                db_index=True, default='Planned', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('display_order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('skill_plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                                 related_name='entries', to='planner.skillplan')),
            ],
            options={
                'verbose_name': 'skill plan entry',
                'verbose_name_plural': 'skill plan entries',
                'ordering': ['skill_plan', 'display_order', 'id'],
                'unique_together': {('skill_plan', 'skill_id', 'level')},
            },
        ),
        migrations.CreateModel(
            name='SkillPlanRemap',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('after_skill_id', models.IntegerField(blank=True, null=True)),
                ('after_level', models.SmallIntegerField(blank=True, null=True)),
                ('intelligence', models.SmallIntegerField(default=0)),
                ('memory', models.SmallIntegerField(default=0)),
                ('perception', models.SmallIntegerField(default=0)),
                ('willpower', models.SmallIntegerField(default=0)),
                ('charisma', models.SmallIntegerField(default=0)),
                ('display_order', models.IntegerField(default=0)),
                ('skill_plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                                 related_name='remaps', to='planner.skillplan')),
            ],
            options={
                'verbose_name': 'skill plan remap',
                'verbose_name_plural': 'skill plan remaps',
                'ordering': ['skill_plan', 'display_order', 'id'],
            },
        ),
    ]
