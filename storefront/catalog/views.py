import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.db import transaction
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .models import Product, CategoryVisibility, CarouselBackground, SIZE_CODES
from .serializers import ProductSerializer, CategoryVisibilitySerializer, CarouselBackgroundSerializer
from .filters import ProductFilter
from .utils import assign_barcode, find_barcode
from .label_generator import generate_label_sheet
from storefront.core.cache_utils import (
    cached_query, PRODUCTS_NAMESPACE, CATEGORY_VISIBILITY_NAMESPACE, CAROUSEL_NAMESPACE,
    PRODUCTS_LIST_CACHE_TTL, STOREFRONT_CONTENT_CACHE_TTL,
)
from storefront.core.uploads import upload_file, UploadError
from storefront.core.utils import create_audit_log, paginate

logger = logging.getLogger(__name__)

PRODUCT_REQUIRED_FIELDS = ['name', 'description', 'price', 'category', 'base_price']
PUBLIC_PRODUCT_PARAMS = ('search', 'category', 'gender', 'featured')


def hidden_categories(gender=None):
    """Categories switched off globally, or for the given gender"""
    hidden = []
    for visibility in CategoryVisibility.objects.all():
        if not visibility.is_visible_for(gender):
            hidden.append(visibility.category)
    return hidden


@cached_query(cache_ttl=PRODUCTS_LIST_CACHE_TTL, key_prefix=PRODUCTS_NAMESPACE)
def get_public_products(params):
    params = dict(params)
    queryset = Product.objects.exclude(category__in=hidden_categories(params.get('gender')))
    filterset = ProductFilter(params, queryset=queryset)
    return ProductSerializer(filterset.qs.order_by('-created_at'), many=True).data


@cached_query(cache_ttl=STOREFRONT_CONTENT_CACHE_TTL, key_prefix=CATEGORY_VISIBILITY_NAMESPACE)
def get_visible_categories(gender):
    rows = [
        row for row in CategoryVisibility.objects.order_by('sort_order', 'category')
        if row.is_visible_for(gender)
    ]
    return CategoryVisibilitySerializer(rows, many=True).data


@cached_query(cache_ttl=STOREFRONT_CONTENT_CACHE_TTL, key_prefix=CAROUSEL_NAMESPACE)
def get_active_slides():
    slides = CarouselBackground.objects.filter(is_active=True).order_by('order', 'slide_id')
    return CarouselBackgroundSerializer(slides, many=True).data


# Public storefront endpoints
@api_view(['GET'])
@permission_classes([AllowAny])
def product_list(request):
    """Storefront product listing; hidden categories never appear"""
    params = tuple(sorted(
        (key, request.query_params.get(key)) for key in PUBLIC_PRODUCT_PARAMS
        if request.query_params.get(key)
    ))
    return Response({'products': get_public_products(params)})


@api_view(['GET'])
@permission_classes([AllowAny])
def product_public_detail(request, pk):
    product = get_object_or_404(Product, pk=pk)
    if product.category in hidden_categories():
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def category_visibility_public(request):
    """Visible categories, optionally narrowed to one gender"""
    gender = request.query_params.get('gender') or None
    return Response({'categories': get_visible_categories(gender)})


@api_view(['GET'])
@permission_classes([AllowAny])
def carousel_backgrounds_public(request):
    return Response({'slides': get_active_slides()})


# Admin product endpoints
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_list_create(request):
    """List products (search, category, page/limit) or create a product"""
    if request.method == 'GET':
        queryset = Product.objects.all()
        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
        category = request.query_params.get('category')
        if category and category != 'all':
            queryset = queryset.filter(category=category)
        return Response(paginate(request, queryset.order_by('-created_at'), ProductSerializer, default_limit=10))

    missing = [field for field in PRODUCT_REQUIRED_FIELDS if request.data.get(field) in (None, '')]
    if missing:
        return Response({'error': 'Missing required fields', 'missing': missing}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Product',
            object_id=str(product.id),
            object_name=product.name,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            old_data = {'name': product.name, 'price': str(product.price), 'stock': product.stock}
            serializer.save()
            new_data = {'name': product.name, 'price': str(product.price), 'stock': product.stock}
            changes = {k: {'old': old_data[k], 'new': new_data[k]} for k in old_data if old_data[k] != new_data[k]}
            if changes:
                create_audit_log(
                    request=request,
                    action='update',
                    model_name='Product',
                    object_id=str(product.id),
                    object_name=product.name,
                    changes=changes
                )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_id = str(product.id)
        product_name = product.name
        product.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=product_id,
            object_name=product_name,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def product_barcodes(request, pk):
    """List a product's barcodes or generate one for a colour/size"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response({'barcodes': product.barcodes or []})

    color = (request.data.get('color') or '').strip()
    size = (request.data.get('size') or '').strip()
    if not color or not size:
        return Response({'error': 'Color and size are required'}, status=status.HTTP_400_BAD_REQUEST)
    if size not in SIZE_CODES:
        return Response({'error': f'Invalid size: {size}'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product.pk)
        entry = assign_barcode(product, color, size, color_hex=request.data.get('color_hex'))

    logger.info(f"Generated barcode {entry['value']} for product {product.id} {color}/{size}")
    return Response(entry, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def barcode_labels(request):
    """
    Printable label sheet.
    Body: {"items": [{"product": id, "color": ..., "size": ..., "quantity": n}, ...]}
    Missing barcodes are generated on the way.
    """
    items = request.data.get('items') or []
    if not isinstance(items, list) or not items:
        return Response({'error': 'At least one label item is required'}, status=status.HTTP_400_BAD_REQUEST)

    labels = []
    for index, item in enumerate(items):
        color = item.get('color')
        size = item.get('size')
        if not item.get('product') or not color or size not in SIZE_CODES:
            return Response({'error': f'Invalid label item at position {index}'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            quantity = int(item.get('quantity', 1))
        except (TypeError, ValueError):
            return Response({'error': f'Invalid quantity at position {index}'}, status=status.HTTP_400_BAD_REQUEST)
        if quantity < 1:
            return Response({'error': f'Invalid quantity at position {index}'}, status=status.HTTP_400_BAD_REQUEST)

        product = Product.objects.filter(pk=item['product']).first()
        if not product:
            return Response({'error': f"Product {item['product']} not found"}, status=status.HTTP_404_NOT_FOUND)
        entry = find_barcode(product, color, size) or assign_barcode(product, color, size)
        labels.append({
            'product_name': product.name,
            'barcode_value': entry['value'],
            'color': color,
            'size': size,
            'quantity': quantity,
        })

    pdf = generate_label_sheet(labels)
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="labels-{timezone.localdate():%Y%m%d}.pdf"'
    return response


# Category visibility
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_category_visibility(request):
    """List every category row or upsert a batch of them"""
    if request.method == 'GET':
        rows = CategoryVisibility.objects.select_related('updated_by').order_by('sort_order', 'category')
        return Response({'categories': CategoryVisibilitySerializer(rows, many=True).data})

    categories = request.data.get('categories')
    if not isinstance(categories, list) or not categories:
        return Response({'error': 'Categories must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    updated = []
    with transaction.atomic():
        for data in categories:
            instance = CategoryVisibility.objects.filter(category=data.get('category')).first()
            serializer = CategoryVisibilitySerializer(instance, data=data, partial=instance is not None)
            if not serializer.is_valid():
                transaction.set_rollback(True)
                return Response({'category': data.get('category'), 'errors': serializer.errors},
                                status=status.HTTP_400_BAD_REQUEST)
            updated.append(serializer.save(updated_by=request.user))

    create_audit_log(
        request=request,
        action='update',
        model_name='CategoryVisibility',
        object_id=','.join(row.category for row in updated),
        changes={row.category: {'is_visible': row.is_visible, 'gender_visibility': row.gender_visibility}
                 for row in updated}
    )
    return Response({
        'message': 'Category visibility updated',
        'categories': CategoryVisibilitySerializer(updated, many=True).data,
    })


# Carousel backgrounds
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_carousel_list_create(request):
    if request.method == 'GET':
        slides = CarouselBackground.objects.order_by('order', 'slide_id')
        return Response({'slides': CarouselBackgroundSerializer(slides, many=True).data})

    serializer = CarouselBackgroundSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_carousel_detail(request, pk):
    slide = get_object_or_404(CarouselBackground, pk=pk)

    if request.method == 'GET':
        return Response(CarouselBackgroundSerializer(slide).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CarouselBackgroundSerializer(slide, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        slide.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
@parser_classes([MultiPartParser, FormParser])
def admin_upload(request):
    """Upload an image to the image host and return its URL"""
    file = request.FILES.get('file')
    if not file:
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)

    folder = request.data.get('folder') or 'products'
    try:
        url = upload_file(file, folder)
    except UploadError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({'url': url, 'alt': file.name}, status=status.HTTP_201_CREATED)
