"""
EVE Online reference data models.

These models are populated from the SDE (Static Data Export). The planner
only needs item types, their groups and the dogma attributes that describe
skills (rank, training attributes and prerequisites).
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

SKILL_CATEGORY_ID = 16


class ItemTypeManager(models.Manager):
    """Manager for ItemType queries."""

    def get_skill_by_name(self, name: str):
        """Get a skill item type by name, ignoring case."""
        return self.skills().filter(name__iexact=name).first()

    def skills(self):
        """Item types whose group is in the Skill category."""
        skill_groups = ItemGroup.objects.filter(category_id=SKILL_CATEGORY_ID).values('id')
        return self.get_queryset().filter(group_id__in=skill_groups)


class ItemType(models.Model):
    """
    EVE Online item type (from invTypes table in SDE).

    Skills are item types too; their group sits in category 16.
    """

    id = models.BigIntegerField(primary_key=True)  # typeID
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)
    group_id = models.IntegerField(db_index=True, null=True)  # FK to invGroups
    published = models.BooleanField(default=True)

    objects = ItemTypeManager()

    class Meta:
        verbose_name = _('item type')
        verbose_name_plural = _('item types')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class ItemGroup(models.Model):
    """
    EVE Online item group (from invGroups table in SDE).

    Skill groups are what plan-from-character filters on (e.g. "Navigation").
    """

    id = models.IntegerField(primary_key=True)  # groupID
    name = models.CharField(max_length=255)
    category_id = models.IntegerField(db_index=True, null=True)  # FK to invCategories
    published = models.BooleanField(default=True)

    class Meta:
        verbose_name = _('item group')
        verbose_name_plural = _('item groups')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class TypeAttribute(models.Model):
    """
    EVE Online type attribute (from dgmTypeAttributes table in SDE).

    Stores attribute values for item types. This is how skill rank, training
    attributes and prerequisites are stored.
    """

    id = models.BigAutoField(primary_key=True)
    type_id = models.IntegerField(db_index=True)  # FK to ItemType
    attribute_id = models.IntegerField(db_index=True)  # FK to AttributeType
    value_int = models.IntegerField(null=True, blank=True)
    value_float = models.FloatField(null=True, blank=True)

    class Meta:
        verbose_name = _('type attribute')
        verbose_name_plural = _('type attributes')
        unique_together = [['type_id', 'attribute_id']]
        ordering = ['type_id', 'attribute_id']

    def __str__(self) -> str:
        return f"Type {self.type_id}: attr_{self.attribute_id} = {self.value}"

    @property
    def value(self) -> int | None:
        """Integer value, falling back to the float column (the SDE uses both)."""
        if self.value_int is not None:
            return self.value_int
        if self.value_float is not None:
            return int(self.value_float)
        return None
