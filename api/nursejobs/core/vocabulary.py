"""Closed nursing vocabularies loaded into the taxonomy registry at start-up.

Canonical values double as display names. Store variants are the raw spellings
the ingestion side writes for a value; aliases are looser synonyms seen in
scraped postings and classifier output.
"""

SPECIALTIES = (
    "Ambulatory",
    "Cardiac",
    "Case Management",
    "Cath Lab",
    "Clinical Documentation",
    "Correctional",
    "Dialysis",
    "Endoscopy",
    "ER",
    "Float Pool",
    "General Nursing",
    "Geriatrics",
    "Home Health",
    "Hospice",
    "ICU",
    "Infusion",
    "Labor & Delivery",
    "Maternity",
    "Med-Surg",
    "Mental Health",
    "Neurology",
    "NICU",
    "Nurse Educator",
    "Oncology",
    "OR",
    "PACU",
    "Pediatrics",
    "Quality Assurance",
    "Radiology",
    "Rehabilitation",
    "School",
    "Stepdown",
    "Telehealth",
    "Telemetry",
    "Transplant",
    "Utilization Review",
    "Wound Care",
)

SPECIALTY_ALIASES = {
    "l&d": "Labor & Delivery",
    "l & d": "Labor & Delivery",
    "l and d": "Labor & Delivery",
    "labor and delivery": "Labor & Delivery",
    "labor delivery": "Labor & Delivery",
    "ob/gyn": "Labor & Delivery",
    "obgyn": "Labor & Delivery",
    "obstetrics": "Labor & Delivery",
    "reproductive": "Labor & Delivery",
    "women's services": "Labor & Delivery",
    "psychiatric": "Mental Health",
    "psych": "Mental Health",
    "psychiatry": "Mental Health",
    "behavioral health": "Mental Health",
    "rehab": "Rehabilitation",
    "ed": "ER",
    "emergency": "ER",
    "emergency department": "ER",
    "emergency room": "ER",
    "triage": "ER",
    "neuro": "Neurology",
    "neuroscience": "Neurology",
    "neuro science": "Neurology",
    "neurosurgery": "Neurology",
    "cardiac care": "Cardiac",
    "cardiovascular": "Cardiac",
    "cardiology": "Cardiac",
    "cardiac surgery": "Cardiac",
    "cv": "Cardiac",
    "critical care": "ICU",
    "intensive care": "ICU",
    "ccu": "ICU",
    "micu": "ICU",
    "sicu": "ICU",
    "picu": "ICU",
    "cardiac icu": "ICU",
    "operating room": "OR",
    "surgery": "OR",
    "surgical": "OR",
    "perioperative": "OR",
    "or/perioperative": "OR",
    "crna": "OR",
    "med surg": "Med-Surg",
    "medsurg": "Med-Surg",
    "med/surg": "Med-Surg",
    "medical surgical": "Med-Surg",
    "medical-surgical": "Med-Surg",
    "orthopedics": "Med-Surg",
    "orthopedic": "Med-Surg",
    "ortho": "Med-Surg",
    "post anesthesia": "PACU",
    "post-anesthesia": "PACU",
    "recovery room": "PACU",
    "outpatient": "Ambulatory",
    "clinic": "Ambulatory",
    "interventional radiology": "Radiology",
    "ir": "Radiology",
    "geriatric": "Geriatrics",
    "elderly care": "Geriatrics",
    "long term care": "Geriatrics",
    "long-term care": "Geriatrics",
    "ltc": "Geriatrics",
    "skilled nursing": "Geriatrics",
    "snf": "Geriatrics",
    "pediatric": "Pediatrics",
    "peds": "Pediatrics",
    "cancer": "Oncology",
    "cancer care": "Oncology",
    "tele": "Telemetry",
    "pcu": "Stepdown",
    "progressive": "Stepdown",
    "progressive care": "Stepdown",
    "step down": "Stepdown",
    "step-down": "Stepdown",
    # Travel is a job type, not a specialty.
    "travel": "General Nursing",
    "travel nurse": "General Nursing",
    "travel nursing": "General Nursing",
    "inpatient": "General Nursing",
    "leadership": "General Nursing",
    "other": "General Nursing",
    "cath": "Cath Lab",
    "cardiac cath": "Cath Lab",
    "catheterization": "Cath Lab",
    "case manager": "Case Management",
    "care management": "Case Management",
    "care coordination": "Case Management",
    "home healthcare": "Home Health",
    "homecare": "Home Health",
    "home care": "Home Health",
    "home nursing": "Home Health",
    "visiting nurse": "Home Health",
    "school nurse": "School",
    "school nursing": "School",
    "corrections": "Correctional",
    "prison": "Correctional",
    "jail": "Correctional",
    "float": "Float Pool",
    "floating": "Float Pool",
    "resource pool": "Float Pool",
    "wound": "Wound Care",
    "wound management": "Wound Care",
    "ostomy": "Wound Care",
    "utilization management": "Utilization Review",
    "ur nurse": "Utilization Review",
    "um nurse": "Utilization Review",
    "prior authorization": "Utilization Review",
    "prior auth": "Utilization Review",
    "appeals nurse": "Utilization Review",
    "medical review": "Utilization Review",
    "concurrent review": "Utilization Review",
    "telemedicine": "Telehealth",
    "tele-health": "Telehealth",
    "virtual care": "Telehealth",
    "remote triage": "Telehealth",
    "telephone triage": "Telehealth",
    "nurse line": "Telehealth",
    "advice nurse": "Telehealth",
    "cdi": "Clinical Documentation",
    "cdi specialist": "Clinical Documentation",
    "clinical documentation improvement": "Clinical Documentation",
    "documentation specialist": "Clinical Documentation",
    "coding nurse": "Clinical Documentation",
    "qa nurse": "Quality Assurance",
    "quality improvement": "Quality Assurance",
    "qi nurse": "Quality Assurance",
    "quality coordinator": "Quality Assurance",
    "quality management": "Quality Assurance",
    "patient safety": "Quality Assurance",
    "risk management": "Quality Assurance",
    "education": "Nurse Educator",
    "clinical educator": "Nurse Educator",
    "staff development": "Nurse Educator",
    "nurse instructor": "Nurse Educator",
    "nursing instructor": "Nurse Educator",
    "education coordinator": "Nurse Educator",
    "clinical instructor": "Nurse Educator",
}

# Retired URL slugs that now redirect to the current specialty slug.
SPECIALTY_SLUG_ALIASES = {
    "step-down": "stepdown",
    "progressive-care": "stepdown",
    "l-d": "labor-delivery",
    "psychiatric": "mental-health",
    "rehab": "rehabilitation",
    "cardiac-care": "cardiac",
    "home-care": "home-health",
}

JOB_TYPES = ("Travel", "Per Diem", "Contract", "Full Time", "Part Time")

JOB_TYPE_STORE_VARIANTS = {
    "Travel": ("travel",),
    "Per Diem": ("per-diem", "per diem", "prn"),
    "Contract": ("contract",),
    "Full Time": ("full-time", "full time"),
    "Part Time": ("part-time", "part time"),
}

JOB_TYPE_ALIASES = {
    "perdiem": "Per Diem",
    "pro re nata": "Per Diem",
    "fulltime": "Full Time",
    "parttime": "Part Time",
    "travel nurse": "Travel",
    "travel contract": "Travel",
}

JOB_TYPE_SLUG_ALIASES = {"prn": "per-diem"}

SHIFT_TYPES = ("Day Shift", "Night Shift", "Rotating Shift", "Evening Shift", "Variable Shift")

SHIFT_TYPE_STORE_VARIANTS = {
    "Day Shift": ("days", "day"),
    "Night Shift": ("nights", "night"),
    "Rotating Shift": ("rotating",),
    "Evening Shift": ("evenings",),
    "Variable Shift": ("variable",),
}

SHIFT_TYPE_ALIASES = {
    "days only": "Day Shift",
    "nocturnal": "Night Shift",
    "noc": "Night Shift",
    "evening": "Evening Shift",
    "swing": "Evening Shift",
    "pm shift": "Evening Shift",
    "rotating shifts": "Rotating Shift",
    "various": "Variable Shift",
    "flexible": "Variable Shift",
}

EXPERIENCE_LEVELS = ("New Grad", "Experienced", "Leadership")

EXPERIENCE_LEVEL_ALIASES = {
    "newgrad": "New Grad",
    "new graduate": "New Grad",
    "lead": "Leadership",
    "manager": "Leadership",
    "charge": "Leadership",
}
