import logging
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from django.shortcuts import get_object_or_404
from storefront.core.emails import send_custom_order_emails
from storefront.core.uploads import upload_file, UploadError
from storefront.core.utils import create_audit_log, paginate
from storefront.payments import stripe_client
from .models import CustomOrder
from .serializers import CustomOrderSerializer, CustomOrderUpdateSerializer

logger = logging.getLogger(__name__)

DESIGN_FOLDER = 'custom-orders'
REQUIRED_FIELDS = ['first_name', 'last_name', 'email', 'phone', 'address', 'city', 'province', 'postal_code',
                   'selected_product']


@api_view(['POST'])
@permission_classes([AllowAny])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def custom_order_create(request):
    """
    Submit a custom order request.

    Accepts multipart form data; design files are sent as repeated
    ``design_files`` parts and uploaded to the image host.
    """
    missing = [field for field in REQUIRED_FIELDS if not str(request.data.get(field) or '').strip()]
    if missing:
        return Response({'error': 'Missing required fields', 'missing': missing}, status=status.HTTP_400_BAD_REQUEST)

    data = {key: request.data.get(key) for key in request.data.keys() if key != 'design_files'}
    serializer = CustomOrderSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    design_files = []
    for file in request.FILES.getlist('design_files'):
        try:
            design_files.append({'name': file.name, 'url': upload_file(file, DESIGN_FOLDER)})
        except UploadError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    custom_order = serializer.save(design_files=design_files)
    logger.info(f"Custom order #{custom_order.id} submitted by {custom_order.email}")
    send_custom_order_emails(custom_order)

    return Response({
        'success': True,
        'orderId': custom_order.id,
        'message': 'Custom order submitted successfully',
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_custom_order_list(request):
    queryset = CustomOrder.objects.all()
    status_filter = request.query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    return Response(paginate(request, queryset.order_by('-submitted_at'), CustomOrderSerializer, default_limit=10))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def admin_custom_order_detail(request, pk):
    custom_order = get_object_or_404(CustomOrder, pk=pk)

    if request.method == 'GET':
        return Response(CustomOrderSerializer(custom_order).data)

    # PUT
    if not any(field in request.data for field in CustomOrderUpdateSerializer.Meta.fields):
        return Response({'error': 'Provide at least one of status, invoice_data or payment_link'},
                        status=status.HTTP_400_BAD_REQUEST)

    previous_status = custom_order.status
    serializer = CustomOrderUpdateSerializer(custom_order, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer.save()

    changes = {field: request.data[field] for field in CustomOrderUpdateSerializer.Meta.fields if field in request.data}
    if 'status' in changes:
        changes['status'] = {'old': previous_status, 'new': custom_order.status}
    create_audit_log(
        request=request,
        action='update',
        model_name='CustomOrder',
        object_id=str(custom_order.id),
        object_name=f"{custom_order.first_name} {custom_order.last_name}",
        changes=changes
    )
    return Response(CustomOrderSerializer(custom_order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def custom_order_payment_link(request, pk):
    """Create a Stripe payment link for the quoted amount (in pounds)"""
    custom_order = get_object_or_404(CustomOrder, pk=pk)
    try:
        amount = Decimal(str(request.data.get('amount')))
    except (InvalidOperation, TypeError, ValueError):
        amount = None
    if amount is None or amount <= 0:
        return Response({'error': 'Valid amount is required'}, status=status.HTTP_400_BAD_REQUEST)

    description = request.data.get('description') or f"Custom Order #{custom_order.id}"
    try:
        url = stripe_client.create_payment_link(description, amount, metadata={
            'orderId': str(custom_order.id),
            'orderType': 'custom',
            'customerEmail': custom_order.email,
            'customerName': f"{custom_order.first_name} {custom_order.last_name}",
        })
    except stripe_client.StripeError as e:
        logger.error(f"Failed to create payment link for custom order #{custom_order.id}: {str(e)}")
        return Response({'error': 'Failed to create payment link'}, status=status.HTTP_502_BAD_GATEWAY)

    custom_order.payment_link = url
    custom_order.save(update_fields=['payment_link', 'updated_at'])
    create_audit_log(
        request=request,
        action='payment_link',
        model_name='CustomOrder',
        object_id=str(custom_order.id),
        object_name=f"{custom_order.first_name} {custom_order.last_name}",
        changes={'amount': str(amount), 'payment_link': url}
    )
    return Response({'paymentLink': url})
