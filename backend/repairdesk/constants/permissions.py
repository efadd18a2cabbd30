"""Roles and policy actions.

Roles are carried as the ``role`` claim of the access token. Actions are the
verbs checked by ``repairdesk.services.policy.authorize``.
"""
from repairdesk.models.authz import User

ROLE_ADMIN = User.ROLE_ADMIN
ROLE_MANAGER = User.ROLE_MANAGER
ROLE_TECHNICIAN = User.ROLE_TECHNICIAN
ROLE_RECEPTIONIST = User.ROLE_RECEPTIONIST
ALL_ROLES = User.ALL_ROLES

# Roles allowed every action.
SUPERVISOR_ROLES = (ROLE_ADMIN, ROLE_MANAGER)

ACTION_JOB_READ = 'JOB.READ'
ACTION_JOB_CREATE = 'JOB.CREATE'
ACTION_JOB_UPDATE = 'JOB.UPDATE'
ACTION_JOB_STATUS = 'JOB.STATUS'
ACTION_JOB_ASSIGN = 'JOB.ASSIGN'
ACTION_JOB_RECORD = 'JOB.RECORD'
ACTION_JOB_PART_ADD = 'JOB.PART.ADD'
ACTION_JOB_PART_REMOVE = 'JOB.PART.REMOVE'
ACTION_CUSTOMER_READ = 'CUSTOMER.READ'
ACTION_CUSTOMER_CREATE = 'CUSTOMER.CREATE'
ACTION_CUSTOMER_UPDATE = 'CUSTOMER.UPDATE'
ACTION_CUSTOMER_DELETE = 'CUSTOMER.DELETE'
ACTION_PART_READ = 'PART.READ'
ACTION_PART_MANAGE = 'PART.MANAGE'
ACTION_CATALOG_READ = 'CATALOG.READ'

READ_ACTIONS = {
    ACTION_JOB_READ,
    ACTION_CUSTOMER_READ,
    ACTION_PART_READ,
    ACTION_CATALOG_READ,
}

# Technicians act only on jobs assigned to them.
TECHNICIAN_JOB_ACTIONS = {ACTION_JOB_STATUS, ACTION_JOB_RECORD, ACTION_JOB_PART_ADD}

RECEPTIONIST_ACTIONS = {ACTION_JOB_CREATE, ACTION_JOB_UPDATE, ACTION_CUSTOMER_CREATE, ACTION_CUSTOMER_UPDATE}

# Job fields a receptionist may change (snake_case attribute names).
RECEPTIONIST_EDITABLE_FIELDS = frozenset({
    'customer_id',
    'miner_model_id',
    'serial_number',
    'password',
    'problem_description',
    'customer_notes',
})
