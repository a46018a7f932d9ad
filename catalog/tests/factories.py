from decimal import Decimal

import factory
from catalog.models import Item
from factory.django import DjangoModelFactory


class ItemFactory(DjangoModelFactory):
    class Meta:
        model = Item

    business = factory.SubFactory("business.tests.factories.BusinessFactory")
    name = factory.Sequence(lambda n: f"Item {n}")
    sku = factory.Faker("bothify", text="SKU-####-???")
    unit = "grams"
    storage_unit = "Kg"
    cost_per_unit = Decimal("2.50000000")
    is_active = True
