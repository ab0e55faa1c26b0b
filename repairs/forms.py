"""
repairs/forms.py
================
Django forms for the repair desk.
RepairSubmitForm validates the public submission, whether it arrives as the
JSON body of /api/submit (camelCase keys, see from_payload) or from the
server-rendered form.
"""

from django import forms

from .models import RepairRequest

# JSON key -> model field
SUBMIT_FIELD_MAP = {
    "fullName":     "full_name",
    "deptName":     "dept_name",
    "deptBuilding": "dept_building",
    "deptFloor":    "dept_floor",
    "device":       "device",
    "deviceId":     "device_id",
    "issue":        "issue",
    "phone":        "phone",
    "notes":        "notes",
}

# Checked in this order; the first failure is the one reported.
REQUIRED_MESSAGES = [
    ("full_name", "Name is required"),
    ("device",    "Device type is required"),
    ("device_id", "Device ID is required"),
    ("issue",     "Issue description is required"),
]


class RepairSubmitForm(forms.ModelForm):
    """Form used by hospital staff to report a broken device."""

    class Meta:
        model = RepairRequest
        fields = [
            "full_name", "dept_name", "dept_building", "dept_floor",
            "device", "device_id", "issue", "phone", "notes",
        ]
        error_messages = {
            name: {"required": message} for name, message in REQUIRED_MESSAGES
        }
        widgets = {
            "full_name":     forms.TextInput(attrs={"placeholder": "ชื่อ-นามสกุล", "id": "f_name"}),
            "dept_name":     forms.TextInput(attrs={"placeholder": "เช่น อายุรกรรม", "id": "f_dept"}),
            "dept_building": forms.TextInput(attrs={"placeholder": "อาคาร", "id": "f_building"}),
            "dept_floor":    forms.TextInput(attrs={"placeholder": "ชั้น", "id": "f_floor"}),
            "device":        forms.TextInput(attrs={"placeholder": "เช่น คอมพิวเตอร์, เครื่องพิมพ์", "id": "f_device"}),
            "device_id":     forms.TextInput(attrs={"placeholder": "หมายเลขเครื่อง ร.พ.น.", "id": "f_device_id"}),
            "issue":         forms.Textarea(attrs={"rows": 4, "id": "f_issue"}),
            "phone":         forms.TextInput(attrs={"placeholder": "เบอร์ภายใน / มือถือ", "id": "f_phone"}),
            "notes":         forms.Textarea(attrs={"rows": 2, "id": "f_notes"}),
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "RepairSubmitForm":
        data = {
            field: str(payload.get(key) or "")
            for key, field in SUBMIT_FIELD_MAP.items()
        }
        return cls(data)

    def first_error(self) -> str:
        for name, message in REQUIRED_MESSAGES:
            if name in self.errors:
                return message
        for name, errors in self.errors.items():
            return f"{name}: {errors[0]}"
        return ""
