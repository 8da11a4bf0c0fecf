import django_filters
from django.db.models import Q
from .models import Product, CATEGORY_CHOICES, GENDER_CHOICES


class ProductFilter(django_filters.FilterSet):
    """
    Filter set for product listings
    """
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.ChoiceFilter(choices=CATEGORY_CHOICES)
    gender = django_filters.ChoiceFilter(choices=GENDER_CHOICES)
    featured = django_filters.CharFilter(method='filter_featured', label='Featured')

    class Meta:
        model = Product
        fields = ['search', 'category', 'gender', 'featured']

    def filter_search(self, queryset, name, value):
        """Search name and description"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(description__icontains=value))

    def filter_featured(self, queryset, name, value):
        """Only ``true`` narrows the list; anything else leaves it untouched"""
        if str(value).lower() in ('true', '1', 'yes'):
            return queryset.filter(featured=True)
        return queryset
