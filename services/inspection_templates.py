"""
Inspection templates - step definitions for the inspection wizard and the
per-item field sets used on the inspection route.

Fields are plain dicts:
    name, label, type (text/number/checkbox/photo/date/select), required,
    options, placeholder, show_when {'field': ..., 'value': str | [str]}
"""

from typing import Dict, List, Optional, Any

FIELD_TYPES = {'text', 'number', 'checkbox', 'photo', 'date', 'select'}
STEP_COMPONENTS = {'route', 'photo-upload', 'review'}

YES_NO = ['Yes', 'No']
YES_NO_OBSTRUCTED = ['Yes', 'No', 'Obstructed']


def field(name, label, field_type='text', required=False, options=None, placeholder=None, show_when=None):
    data = {'name': name, 'label': label, 'type': field_type, 'required': required}
    if options:
        data['options'] = list(options)
    if placeholder:
        data['placeholder'] = placeholder
    if show_when:
        data['show_when'] = show_when
    return data


def _gap_fields(prefix, label, positions):
    return [field(f"{prefix}_{key}", f"{label} - {pos} (mm)", 'number') for key, pos in positions]


# =============================================================================
# FIRE DOOR SURVEY (38 survey points; gaps take three readings each)
# =============================================================================

FIRE_DOOR_FIELDS = [
    field('location_ids', "Location ID's", required=True, placeholder='e.g., Ground Floor Corridor'),
    field('door_type', 'Door Set Type', 'select', required=True,
          options=['Single Leaf', 'Double Leaf (Master/Slave)', 'Leaf & a Half']),
    field('door_leaf_certification', 'Door Leaf Certification', 'select', options=YES_NO_OBSTRUCTED),
    field('fire_resistance_rating', 'Fire Resistance Rating', 'select', required=True,
          options=['FD30', 'FD30s', 'FD60', 'FD60s']),
    field('signage', 'Fire Door Signage', 'select',
          options=['None', 'FDKS (Keep Shut)', 'FDKL (Keep Locked)', 'Automatic FDKC', 'Incorrect Signage']),
    field('door_width', 'Actual Door Width (mm)', 'number', placeholder='e.g., 926'),
    field('door_height', 'Actual Door Height (mm)', 'number', placeholder='e.g., 2040'),
    field('door_thickness', 'Door Leaf Thickness (mm)', 'number', placeholder='e.g., 44'),
    *_gap_fields('gap_hinge', 'Hinge Stile Gap', [('top', 'Top'), ('mid', 'Middle'), ('bot', 'Bottom')]),
    *_gap_fields('gap_leading', 'Leading Stile Gap', [('top', 'Top'), ('mid', 'Middle'), ('bot', 'Bottom')]),
    *_gap_fields('gap_top', 'Top Rail Gap', [('left', 'Left'), ('mid', 'Middle'), ('right', 'Right')]),
    *_gap_fields('gap_bottom', 'Bottom Rail Gap (Closed)', [('left', 'Left'), ('mid', 'Middle'), ('right', 'Right')]),
    *_gap_fields('threshold_gap', 'Threshold Gap (Open)', [('left', 'Left'), ('mid', 'Middle'), ('right', 'Right')]),
    field('flooring_level', 'Is Flooring Level on Door Swing?', 'select', options=YES_NO),
    field('door_leaf_condition', 'Door Leaf Condition Acceptable?', 'select', options=YES_NO),
    field('door_leaf_defects', 'Door Leaf Details of Defects', placeholder='Describe defects...',
          show_when={'field': 'door_leaf_condition', 'value': 'No'}),
    field('frame_type', 'Door Frame Type', 'select', options=['Timber', 'Metal', 'Composite', 'Other']),
    field('frame_jamb_width', 'Door Frame Jamb Width (mm)', 'number'),
    field('frame_fixed', 'Door Frame Securely Fixed?', 'select', options=YES_NO),
    field('frame_condition', 'Door Frame Condition Acceptable?', 'select', options=YES_NO),
    field('frame_defects', 'Door Frame Details of Defects', placeholder='Describe defects...',
          show_when={'field': 'frame_condition', 'value': 'No'}),
    field('smoke_seal_details', 'Cold Smoke Seal Size, Type & Colour', placeholder='e.g., 15mm x 4mm, Brush, White'),
    field('smoke_seal_condition', 'Cold Smoke Seal Condition Acceptable?', 'select', options=YES_NO),
    field('smoke_seal_defects', 'Cold Smoke Seal Details of Defects', placeholder='Describe defects...',
          show_when={'field': 'smoke_seal_condition', 'value': 'No'}),
    field('hinge_rating', 'Hardware - Hinge Rating', 'select', options=['FD30', 'FD60']),
    field('hinge_condition', 'Hardware - Hinge Condition Acceptable?', 'select', options=YES_NO),
    field('handle_functioning', 'Hardware - Handle Functioning Correctly?', 'select', options=YES_NO),
    field('lock_operational', 'Hardware - Lock/Latch Operational?', 'select', options=YES_NO),
    field('closer_operational', 'Hardware - Door Closer Operational?', 'select', options=YES_NO),
    field('latch_25_seconds', 'Door Latches from Fully Open < 25 Seconds?', 'select', options=YES_NO),
    field('latch_70mm', 'Door Latches from 70mm Open Position?', 'select', options=YES_NO),
    field('hardware_defects', 'Hardware Details of Defects', placeholder='Describe any hardware defects...'),
    field('glazing_type', 'Glazing Type', 'select',
          options=['N/A - Solid Door', 'Georgian Wired', 'Clear Fire Glass', 'Obscure']),
    field('glazing_condition', 'Glazing Condition Acceptable?', 'select', options=YES_NO),
    field('glazing_defects', 'Glazing Details of Defects', placeholder='Describe defects...',
          show_when={'field': 'glazing_condition', 'value': 'No'}),
    field('other_defects', 'Any Other Defects', placeholder='List any additional defects...'),
    field('compliant', 'Is the Door Compliant?', 'select', required=True, options=YES_NO),
    field('remedials', 'Recommended Remedials', placeholder='Describe required fixes...'),
]


# =============================================================================
# ITEM TEMPLATES
# =============================================================================

ITEM_TEMPLATES = {
    'fan': {
        'type': 'fan',
        'label': 'Fan Unit',
        'fields': [
            field('location', 'Location/ID', required=True),
            field('belt_condition', 'Belt Condition', 'select', options=['Good', 'Worn', 'Cracked', 'Loose']),
            field('motor_amps', 'Motor Amps', 'number'),
            field('bearings', 'Bearings/Noise', 'checkbox'),
            field('cleanliness', 'Impeller Cleanliness', 'select', options=['Clean', 'Dusty', 'Dirty', 'Clogged']),
        ]
    },
    'hatch': {
        'type': 'hatch',
        'label': 'Access Hatch',
        'fields': [
            field('location', 'Location', required=True),
            field('seal_integrity', 'Seal Integrity', 'checkbox'),
            field('hardware', 'Hardware/Latches', 'checkbox'),
            field('access_clear', 'Access Clearance', 'checkbox'),
        ]
    },
    'duct': {
        'type': 'duct',
        'label': 'Duct Run',
        'fields': [
            field('location', 'Area/Zone', required=True),
            field('cleanliness', 'Internal Cleanliness', 'select',
                  options=['Clean', 'Light Dust', 'Heavy Dust', 'Debris']),
            field('damage', 'Physical Damage', 'checkbox'),
            field('leaks', 'Air Leaks Detected', 'checkbox'),
        ]
    },
    'damper': {
        'type': 'damper',
        'label': 'Fire/Volume Damper',
        'fields': [
            field('location', 'Location/ID', required=True),
            field('operation', 'Mechanical Operation', 'checkbox'),
            field('fusible_link', 'Fusible Link Intact', 'checkbox'),
            field('drop_test', 'Drop Test Performed', 'checkbox'),
        ]
    },
    'fire_door': {
        'type': 'fire_door',
        'label': 'Fire Door',
        'fields': FIRE_DOOR_FIELDS
    },
    'custom': {
        'type': 'custom',
        'label': 'Custom Item',
        'fields': [
            field('item_name', 'Item Name / Type', required=True, placeholder='e.g. EC Unit, Pump, Etc.'),
            field('location', 'Location', required=True),
            field('condition', 'Condition', 'select', options=['Good', 'Average', 'Poor', 'Damaged']),
            field('notes', 'Inspection Notes'),
            field('action_required', 'Action Required?', 'checkbox'),
        ]
    },
}

ITEM_STATUSES = ('pass', 'fail', 'needs-attention')


# =============================================================================
# INSPECTION TEMPLATES
# =============================================================================

INSPECTION_TEMPLATES = [
    {
        'id': 'hvac-maintenance-general',
        'title': 'HVAC Maintenance Checklist',
        'description': 'Standard comprehensive maintenance for HVAC units.',
        'allowed_item_types': None,
        'steps': [
            {
                'id': 'job-setup',
                'title': 'Job Setup',
                'description': 'Client and Site Details',
                'fields': [
                    field('clientName', 'Client Name', required=True),
                    field('address', 'Service Address', required=True),
                    field('job_number', 'Job Number'),
                ],
            },
            {
                'id': 'route-inspection',
                'title': 'Inspection Route',
                'description': 'Walk the site and add items as you inspect them.',
                'component': 'route',
            },
            {
                'id': 'site-photos',
                'title': 'Site Photos',
                'description': 'General photos of the plant room and site.',
                'component': 'photo-upload',
            },
            {'id': 'review', 'title': 'Review & Submit', 'component': 'review'},
        ],
    },
    {
        'id': 'fire-door-survey',
        'title': 'Fire Door Survey',
        'description': 'Comprehensive inspection of fire door sets (FD30/60).',
        'allowed_item_types': ['fire_door'],
        'steps': [
            {
                'id': 'survey-setup',
                'title': 'Survey Setup',
                'description': 'Building & Client Details',
                'fields': [
                    field('clientName', 'Client Name', required=True),
                    field('address', 'Site Address', required=True),
                    field('job_number', 'Job Number'),
                    field('operative', 'Operative Name'),
                    field('drawing_ref', 'Drawing Reference', placeholder='e.g., Fire Doors 2024'),
                ],
            },
            {
                'id': 'door-route',
                'title': 'Door Schedule',
                'description': 'Add each door set found on the route.',
                'component': 'route',
            },
            {'id': 'review', 'title': 'Review & Submit', 'component': 'review'},
        ],
    },
]


def list_templates() -> List[Dict[str, Any]]:
    """Template summaries for the picker."""
    return [
        {
            'id': t['id'],
            'title': t['title'],
            'description': t['description'],
            'step_count': len(t['steps']),
        }
        for t in INSPECTION_TEMPLATES
    ]


def get_template(template_id: str) -> Optional[Dict[str, Any]]:
    for template in INSPECTION_TEMPLATES:
        if template['id'] == template_id:
            return template
    return None


def get_item_template(item_type: str) -> Optional[Dict[str, Any]]:
    return ITEM_TEMPLATES.get(item_type)


def allowed_item_types(template: Dict[str, Any]) -> List[str]:
    return template.get('allowed_item_types') or list(ITEM_TEMPLATES.keys())


def is_field_visible(field_def: Dict[str, Any], values: Dict[str, Any]) -> bool:
    """A field with show_when is visible iff the referenced value matches."""
    condition = field_def.get('show_when')
    if not condition:
        return True
    current = values.get(condition['field'])
    expected = condition['value']
    if isinstance(expected, (list, tuple)):
        return current in expected
    return current == expected


def visible_fields(fields: List[Dict[str, Any]], values: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [f for f in fields if is_field_visible(f, values)]
