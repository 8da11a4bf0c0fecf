from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.db.models import Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from storefront.core.utils import create_audit_log, paginate
from .models import Supply, SupplyOrder
from .serializers import SupplySerializer, SupplyOrderSerializer
from .pdf import render_supply_order


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def supply_list_create(request):
    """List supplies (filters: category, supplier, search) or add one"""
    if request.method == 'GET':
        queryset = Supply.objects.all()
        category = request.query_params.get('category')
        supplier = request.query_params.get('supplier')
        search = request.query_params.get('search')
        if category:
            queryset = queryset.filter(category=category)
        if supplier:
            queryset = queryset.filter(supplier_name__icontains=supplier)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(description__icontains=search) | Q(supplier_name__icontains=search)
            )
        queryset = queryset.order_by('category', 'name')
        return Response({'supplies': SupplySerializer(queryset, many=True).data})
    else:  # POST
        serializer = SupplySerializer(data=request.data)
        if serializer.is_valid():
            supply = serializer.save()
            create_audit_log(request=request, action='create', model_name='Supply',
                             object_id=str(supply.id), object_name=supply.name)
            return Response(SupplySerializer(supply).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def supply_detail(request, pk):
    supply = get_object_or_404(Supply, pk=pk)
    if request.method == 'GET':
        return Response(SupplySerializer(supply).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplySerializer(supply, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Supply', object_id=str(supply.id),
                             object_name=supply.name, changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if supply.order_items.exists():
            return Response({'error': 'Supply is used on supply orders and cannot be deleted'},
                            status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='Supply',
                         object_id=str(supply.id), object_name=supply.name)
        supply.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def supply_order_list_create(request):
    if request.method == 'GET':
        queryset = SupplyOrder.objects.select_related('ordered_by').prefetch_related('items', 'items__supply')
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return Response(paginate(request, queryset.order_by('-created_at'), SupplyOrderSerializer))
    else:  # POST
        data = request.data.copy()
        items_data = data.pop('items', [])
        serializer = SupplyOrderSerializer(data=data, context={'items_data': items_data, 'request': request})
        if serializer.is_valid():
            supply_order = serializer.save(ordered_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='SupplyOrder',
                object_id=str(supply_order.id),
                object_reference=supply_order.reference,
                changes={'total_amount': str(supply_order.total_amount), 'items': len(items_data)}
            )
            return Response(SupplyOrderSerializer(supply_order).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def supply_order_detail(request, pk):
    """Retrieve, update (status, notes, items) or delete a supply order"""
    supply_order = get_object_or_404(
        SupplyOrder.objects.prefetch_related('items', 'items__supply'), pk=pk
    )

    if request.method == 'GET':
        return Response(SupplyOrderSerializer(supply_order).data)

    elif request.method == 'PATCH':
        data = request.data.copy()
        items_data = data.pop('items', None)
        previous_status = supply_order.status
        serializer = SupplyOrderSerializer(
            supply_order, data=data, partial=True, context={'items_data': items_data, 'request': request}
        )
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        extra = {}
        new_status = serializer.validated_data.get('status')
        if new_status == 'ordered' and previous_status != 'ordered':
            extra['ordered_at'] = timezone.now()
        supply_order = serializer.save(**extra)

        changes = {}
        if new_status and new_status != previous_status:
            changes['status'] = {'old': previous_status, 'new': new_status}
        if items_data is not None:
            changes['total_amount'] = str(supply_order.total_amount)
        create_audit_log(request=request, action='update', model_name='SupplyOrder',
                         object_id=str(supply_order.id), object_reference=supply_order.reference, changes=changes)
        return Response(SupplyOrderSerializer(SupplyOrder.objects.get(pk=supply_order.pk)).data)

    else:  # DELETE
        create_audit_log(request=request, action='delete', model_name='SupplyOrder',
                         object_id=str(supply_order.id), object_reference=supply_order.reference)
        supply_order.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def supply_order_pdf(request, pk):
    supply_order = get_object_or_404(SupplyOrder, pk=pk)
    response = HttpResponse(render_supply_order(supply_order), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{supply_order.reference}.pdf"'
    return response
