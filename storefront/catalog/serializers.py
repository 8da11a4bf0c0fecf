from rest_framework import serializers
from .models import Product, CategoryVisibility, CarouselBackground, SIZE_CHOICES


class ProductSerializer(serializers.ModelSerializer):
    total_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'price', 'base_price', 'images', 'category', 'gender',
            'sizes', 'colors', 'stock', 'barcodes', 'featured', 'customizable',
            'low_stock_threshold', 'total_stock', 'created_at', 'updated_at'
        ]
        read_only_fields = ['barcodes', 'created_at', 'updated_at']

    def get_total_stock(self, obj):
        return obj.total_stock()

    def validate_images(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Images must be a list')
        images = []
        for image in value:
            if isinstance(image, str):
                image = {'url': image, 'alt': ''}
            if not isinstance(image, dict) or not image.get('url'):
                raise serializers.ValidationError('Each image needs a url')
            images.append({'url': image['url'], 'alt': image.get('alt', '')})
        return images

    def validate_sizes(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Sizes must be a list')
        invalid = [size for size in value if size not in SIZE_CHOICES]
        if invalid:
            raise serializers.ValidationError(f"Invalid sizes: {', '.join(map(str, invalid))}")
        return value

    def validate_colors(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Colors must be a list')
        for color in value:
            if not isinstance(color, dict) or not color.get('name'):
                raise serializers.ValidationError('Each color needs a name')
        return [{'name': c['name'], 'hexCode': c.get('hexCode', '')} for c in value]

    def validate_stock(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Stock must map color -> size -> quantity')
        cleaned = {}
        for color, row in value.items():
            if not isinstance(row, dict):
                raise serializers.ValidationError(f"Stock for {color} must map size -> quantity")
            cleaned[color] = {}
            for size, quantity in row.items():
                try:
                    quantity = int(quantity)
                except (TypeError, ValueError):
                    raise serializers.ValidationError(f"Invalid quantity for {color}/{size}")
                if quantity < 0:
                    raise serializers.ValidationError(f"Stock for {color}/{size} cannot be negative")
                cleaned[color][size] = quantity
        return cleaned


class CategoryVisibilitySerializer(serializers.ModelSerializer):
    updated_by_email = serializers.CharField(source='updated_by.email', read_only=True, default=None)

    class Meta:
        model = CategoryVisibility
        fields = [
            'id', 'category', 'is_visible', 'display_name', 'description', 'sort_order',
            'gender_visibility', 'updated_by_email', 'updated_at'
        ]
        read_only_fields = ['updated_at']

    def validate_gender_visibility(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Gender visibility must be an object')
        allowed = {'men', 'women', 'unisex', 'kids'}
        unknown = set(value) - allowed
        if unknown:
            raise serializers.ValidationError(f"Invalid gender: {', '.join(sorted(unknown))}")
        merged = {gender: True for gender in allowed}
        merged.update({k: bool(v) for k, v in value.items()})
        return merged


class CarouselBackgroundSerializer(serializers.ModelSerializer):
    class Meta:
        model = CarouselBackground
        fields = [
            'id', 'slide_id', 'title', 'subtitle', 'description', 'button_text', 'button_link',
            'image_url', 'bg_gradient', 'text_color', 'is_active', 'order', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
