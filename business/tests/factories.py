import factory
from business.models import Branch, Business
from factory.django import DjangoModelFactory


class BusinessFactory(DjangoModelFactory):
    class Meta:
        model = Business

    name = factory.Faker("company")
    is_active = True


class BranchFactory(DjangoModelFactory):
    class Meta:
        model = Branch

    business = factory.SubFactory(BusinessFactory)
    name = factory.Sequence(lambda n: f"Branch {n}")
    name_ar = ""
    is_active = True
