from __future__ import annotations
from flask import Blueprint, request
from repairdesk.decorators.auth import require_roles
from repairdesk.constants.permissions import ROLE_ADMIN, ROLE_MANAGER, ROLE_RECEPTIONIST
from repairdesk.utils.listing import paginated_response, single_resource_response
from repairdesk.utils.sorting import apply_multi_sort
from repairdesk.utils.validation import parse_payload
from repairdesk.services import inventory as inventory_service
from repairdesk.services.policy import current_actor
from repairdesk.schemas.inventory import CustomerCreate, CustomerUpdate
from repairdesk.models.customer import Customer
from repairdesk import get_db

customers_bp = Blueprint('customers', __name__)


@customers_bp.route('', methods=['GET', 'HEAD'])
@require_roles()
def list_customers():
    session = get_db()
    q = inventory_service.customer_query(session, search=request.args.get('search'))
    allowed = {'fullName': Customer.full_name, 'updatedAt': Customer.updated_at, 'id': Customer.id}
    q = apply_multi_sort(q, request.args.get('sort'), allowed, Customer.id)
    return paginated_response(q, _customer_json)


@customers_bp.post('')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_RECEPTIONIST)
def create_customer():
    payload = parse_payload(CustomerCreate, request.get_json(silent=True))
    customer = inventory_service.create_customer(get_db(), current_actor(), payload)
    return _customer_json(customer), 201


@customers_bp.route('/<int:customer_id>', methods=['GET', 'HEAD'])
@require_roles()
def get_customer(customer_id: int):
    session = get_db()
    c = inventory_service.load_customer(session, customer_id)
    body = _customer_json(c)
    body['jobCount'] = inventory_service.count_customer_jobs(session, c.id)
    return single_resource_response(c.id, body, c.updated_at)


@customers_bp.put('/<int:customer_id>')
@require_roles(ROLE_ADMIN, ROLE_MANAGER, ROLE_RECEPTIONIST)
def update_customer(customer_id: int):
    payload = parse_payload(CustomerUpdate, request.get_json(silent=True))
    customer = inventory_service.update_customer(get_db(), current_actor(), customer_id, payload)
    return _customer_json(customer)


@customers_bp.delete('/<int:customer_id>')
@require_roles(ROLE_ADMIN, ROLE_MANAGER)
def delete_customer(customer_id: int):
    inventory_service.delete_customer(get_db(), current_actor(), customer_id)
    return {'id': customer_id, 'deleted': True}


def _customer_json(c: Customer):
    return {
        'id': c.id,
        'fullName': c.full_name,
        'phone': c.phone,
        'email': c.email,
        'address': c.address,
        'notes': c.notes,
    }
