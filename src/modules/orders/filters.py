import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    order_state = django_filters.CharFilter(
        field_name="order_state", lookup_expr="iexact"
    )
    payment_state = django_filters.CharFilter(
        field_name="payment_state", lookup_expr="iexact"
    )
    payment_method = django_filters.CharFilter(field_name="payment_method")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "order_state",
            "payment_state",
            "payment_method",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
