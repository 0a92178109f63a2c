import django_filters

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    kind = django_filters.CharFilter(field_name="pricing_kind", lookup_expr="iexact")
    featured = django_filters.BooleanFilter(field_name="is_featured")
    min_price = django_filters.NumberFilter(field_name="unit_price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="unit_price", lookup_expr="lte")

    class Meta:
        model = Product
        fields = ["category", "kind", "featured", "min_price", "max_price"]
