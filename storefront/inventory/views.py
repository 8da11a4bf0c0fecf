from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.db import transaction
from django.shortcuts import get_object_or_404
from storefront.catalog.models import Product
from storefront.core.utils import create_audit_log
from .models import StockAlert
from .serializers import StockAlertSerializer
from .services import check_low_stock


# StockAlert views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def stock_alert_list(request):
    """List stock alerts, newest first, optionally by status"""
    alerts = StockAlert.objects.all().order_by('-created_at')
    alert_status = request.query_params.get('status')
    if alert_status in ('active', 'resolved'):
        alerts = alerts.filter(status=alert_status)
    serializer = StockAlertSerializer(alerts, many=True)
    return Response({'alerts': serializer.data})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def stock_alert_detail(request, pk):
    """Retrieve or resolve a stock alert"""
    alert = get_object_or_404(StockAlert, pk=pk)
    if request.method == 'PATCH':
        if request.data.get('status', 'resolved') != 'resolved':
            return Response({'error': 'Alerts can only be resolved'}, status=status.HTTP_400_BAD_REQUEST)
        if alert.status != 'resolved':
            alert.resolve()
    return Response(StockAlertSerializer(alert).data)


# Stock matrix views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def stock_list(request):
    """Stock matrix of every product with low stock flags per cell"""
    products = Product.objects.all().order_by('name')
    category = request.query_params.get('category')
    if category:
        products = products.filter(category=category)
    low_stock_only = request.query_params.get('low_stock') == 'true'

    results = []
    for product in products:
        cells = []
        for color, row in (product.stock or {}).items():
            for size, quantity in row.items():
                cells.append({
                    'color': color,
                    'size': size,
                    'quantity': quantity,
                    'low_stock': quantity <= product.low_stock_threshold,
                })
        if low_stock_only and not any(cell['low_stock'] for cell in cells):
            continue
        results.append({
            'id': product.id,
            'name': product.name,
            'category': product.category,
            'low_stock_threshold': product.low_stock_threshold,
            'total_stock': product.total_stock(),
            'stock': product.stock,
            'cells': cells,
        })
    return Response({'products': results})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def stock_update(request, product_id):
    """
    Set absolute quantities for stock cells.
    Body: {"cells": [{"color": "Black", "size": "M", "quantity": 12}, ...]}
    """
    cells = request.data.get('cells')
    if not isinstance(cells, list) or not cells:
        return Response({'error': 'Cells must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    for cell in cells:
        try:
            quantity = int(cell.get('quantity'))
        except (TypeError, ValueError):
            return Response({'error': 'Quantity must be a whole number'}, status=status.HTTP_400_BAD_REQUEST)
        if quantity < 0 or not cell.get('color') or not cell.get('size'):
            return Response({'error': 'Each cell needs a color, size and a quantity of 0 or more'},
                            status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        product = get_object_or_404(Product.objects.select_for_update(), pk=product_id)
        changes = {}
        for cell in cells:
            color, size, quantity = cell['color'], cell['size'], int(cell['quantity'])
            old = product.get_stock(color, size)
            product.update_stock(color, size, quantity - old, save=False)
            changes[f"{color}/{size}"] = {'old': old, 'new': quantity}
        product.save(update_fields=['stock', 'updated_at'])
        for cell in cells:
            check_low_stock(product, cell['color'], cell['size'])

    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='Product',
        object_id=str(product.id),
        object_name=product.name,
        changes=changes
    )
    return Response({'id': product.id, 'name': product.name, 'stock': product.stock})
