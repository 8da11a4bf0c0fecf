from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from storefront.core.utils import create_audit_log, paginate
from .models import Voucher
from .serializers import VoucherSerializer, PublicVoucherSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def validate_voucher(request):
    """Check a voucher against a basket and return the discount"""
    code = (request.data.get('code') or '').strip().upper()
    if not code:
        return Response({'error': 'Voucher code is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        order_total = Decimal(str(request.data.get('order_total')))
    except (InvalidOperation, TypeError, ValueError):
        order_total = Decimal('0')
    if order_total <= 0:
        return Response({'error': 'Valid order total is required'}, status=status.HTTP_400_BAD_REQUEST)

    voucher = Voucher.objects.filter(code=code, is_active=True).first()
    if not voucher:
        return Response({'error': 'Invalid voucher code'}, status=status.HTTP_404_NOT_FOUND)
    if not voucher.is_valid():
        return Response({'error': 'Voucher is expired or no longer valid'}, status=status.HTTP_400_BAD_REQUEST)
    if not voucher.meets_minimum(order_total):
        return Response({'error': f'Minimum order amount of £{voucher.minimum_order_amount:.2f} required'},
                        status=status.HTTP_400_BAD_REQUEST)
    if not voucher.applies_to_items(request.data.get('items') or []):
        return Response({'error': 'Voucher cannot be applied to this order'}, status=status.HTTP_400_BAD_REQUEST)

    discount = voucher.calculate_discount(order_total)
    return Response({
        'success': True,
        'voucher': {
            'id': voucher.id,
            'code': voucher.code,
            'type': voucher.type,
            'value': str(voucher.value),
            'description': voucher.description,
        },
        'discountAmount': str(discount),
        'newTotal': str(order_total - discount),
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def discount_codes(request):
    """Vouchers currently on offer"""
    now = timezone.now()
    vouchers = Voucher.objects.filter(
        is_active=True, valid_from__lte=now, valid_until__gte=now
    ).filter(
        Q(usage_limit=0) | Q(used_count__lt=F('usage_limit'))
    ).order_by('valid_until')
    return Response({'discountCodes': PublicVoucherSerializer(vouchers, many=True).data})


# Admin voucher views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def voucher_list_create(request):
    """List vouchers or create a voucher"""
    if request.method == 'GET':
        vouchers = Voucher.objects.all().order_by('-created_at')
        search = request.query_params.get('search', '').strip()
        if search:
            vouchers = vouchers.filter(Q(code__icontains=search) | Q(description__icontains=search))
        active = request.query_params.get('is_active')
        if active in ('true', 'false'):
            vouchers = vouchers.filter(is_active=active == 'true')
        return Response(paginate(request, vouchers, VoucherSerializer, default_limit=20))

    serializer = VoucherSerializer(data=request.data)
    if serializer.is_valid():
        voucher = serializer.save()
        create_audit_log(request=request, action='create', model_name='Voucher',
                         object_id=str(voucher.id), object_name=voucher.code)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def voucher_detail(request, pk):
    """Retrieve, update or delete a voucher"""
    voucher = get_object_or_404(Voucher, pk=pk)

    if request.method == 'GET':
        return Response(VoucherSerializer(voucher).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = VoucherSerializer(voucher, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Voucher',
                             object_id=str(voucher.id), object_name=voucher.code,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request=request, action='delete', model_name='Voucher',
                         object_id=str(voucher.id), object_name=voucher.code)
        voucher.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
