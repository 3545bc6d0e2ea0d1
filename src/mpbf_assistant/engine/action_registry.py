"""Closed catalogue of supported actions and their field requirements."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import BaseModel


class ActionName(str, enum.Enum):
    CREATE_ORDER = "create_order"
    UPDATE_ORDER = "update_order"
    DELETE_ORDER = "delete_order"
    CREATE_PRODUCTION_ORDER = "create_production_order"
    CREATE_ROLL = "create_roll"
    CREATE_CUSTOMER = "create_customer"
    ADD_CUSTOMER_PRODUCT = "add_customer_product"
    ADD_MACHINE = "add_machine"
    CREATE_MAINTENANCE = "create_maintenance"
    CREATE_QUALITY_CHECK = "create_quality_check"
    ANALYZE_PERFORMANCE = "analyze_performance"
    COUNT_CUSTOMERS = "count_customers"
    GENERATE_REPORT = "generate_report"

    @classmethod
    def parse(cls, tag: str | None) -> ActionName | None:
        """Exact match after normalising case, spaces and dashes."""
        if not tag:
            return None
        normalized = tag.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            return None


class ActionKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"


def has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class FieldSpec(BaseModel):
    model_config = {"frozen": True}

    name: str
    keys: tuple[str, ...]
    label_ar: str
    label_en: str
    example_table: str | None = None
    example_column: str | None = None

    def value(self, parameters: dict[str, Any]) -> Any:
        for key in self.keys:
            if has_value(parameters.get(key)):
                return parameters[key]
        return None

    def is_present(self, parameters: dict[str, Any]) -> bool:
        return self.value(parameters) is not None

    def label(self, language: str) -> str:
        return self.label_ar if language == "ar" else self.label_en


class ActionSpec(BaseModel):
    model_config = {"frozen": True}

    name: ActionName
    table: str
    kind: ActionKind
    description: str
    required: tuple[FieldSpec, ...] = ()
    identifier: FieldSpec | None = None
    identifier_prefix: str = ""
    notify: bool = False
    summary_ar: str = ""
    summary_en: str = ""

    @property
    def mutating(self) -> bool:
        return self.kind != ActionKind.READ

    def required_fields(self, allow_synthetic: bool = True) -> tuple[FieldSpec, ...]:
        if self.identifier is not None and not allow_synthetic:
            return self.required + (self.identifier,)
        return self.required

    def missing(
        self, parameters: dict[str, Any], allow_synthetic: bool = True
    ) -> list[FieldSpec]:
        return [
            f for f in self.required_fields(allow_synthetic) if not f.is_present(parameters)
        ]


_CUSTOMER_REF = FieldSpec(
    name="customer",
    keys=("customer_id", "customer_name"),
    label_ar="معرف العميل أو اسمه",
    label_en="customer ID or name",
    example_table="customers",
    example_column="id",
)
_ORDER_REF = FieldSpec(
    name="order",
    keys=("id", "order_number"),
    label_ar="رقم الطلب",
    label_en="order number",
    example_table="orders",
    example_column="order_number",
)
_MACHINE_REF = FieldSpec(
    name="machine_id",
    keys=("machine_id",),
    label_ar="المكينة",
    label_en="machine",
    example_table="machines",
    example_column="id",
)

DEFAULT_ACTIONS: tuple[ActionSpec, ...] = (
    ActionSpec(
        name=ActionName.CREATE_ORDER,
        table="orders",
        kind=ActionKind.CREATE,
        description="Create a customer order (customer_id or customer_name, delivery_date, optional order_number, notes).",
        required=(
            _CUSTOMER_REF,
            FieldSpec(
                name="delivery_date",
                keys=("delivery_date",),
                label_ar="تاريخ التسليم",
                label_en="delivery date",
            ),
        ),
        identifier=FieldSpec(
            name="order_number",
            keys=("order_number",),
            label_ar="رقم الطلب",
            label_en="order number",
        ),
        identifier_prefix="ORD",
        notify=True,
        summary_ar="إنشاء طلب جديد للعميل {customer} بتاريخ تسليم {delivery_date}",
        summary_en="Create new order for customer {customer} due {delivery_date}",
    ),
    ActionSpec(
        name=ActionName.UPDATE_ORDER,
        table="orders",
        kind=ActionKind.UPDATE,
        description="Change the status of an order (id or order_number, status).",
        required=(
            _ORDER_REF,
            FieldSpec(
                name="status",
                keys=("status",),
                label_ar="الحالة الجديدة",
                label_en="new status",
            ),
        ),
        notify=True,
        summary_ar="تحديث حالة الطلب {order} إلى {status}",
        summary_en="Update order {order} to status {status}",
    ),
    ActionSpec(
        name=ActionName.DELETE_ORDER,
        table="orders",
        kind=ActionKind.DELETE,
        description="Delete an order (id or order_number).",
        required=(_ORDER_REF,),
        notify=True,
        summary_ar="حذف الطلب رقم {order}",
        summary_en="Delete order {order}",
    ),
    ActionSpec(
        name=ActionName.CREATE_PRODUCTION_ORDER,
        table="production_orders",
        kind=ActionKind.CREATE,
        description="Create a production (job) order for an order line (order_id, customer_product_id, quantity_kg, optional overrun_percentage).",
        required=(
            FieldSpec(
                name="order_id",
                keys=("order_id",),
                label_ar="رقم الطلب",
                label_en="order ID",
                example_table="orders",
                example_column="id",
            ),
            FieldSpec(
                name="customer_product_id",
                keys=("customer_product_id",),
                label_ar="منتج العميل",
                label_en="customer product",
                example_table="customer_products",
                example_column="id",
            ),
            FieldSpec(
                name="quantity_kg",
                keys=("quantity_kg",),
                label_ar="الكمية بالكيلوغرام",
                label_en="quantity (kg)",
            ),
        ),
        identifier=FieldSpec(
            name="production_order_number",
            keys=("production_order_number",),
            label_ar="رقم أمر الإنتاج",
            label_en="production order number",
        ),
        identifier_prefix="PO",
        notify=True,
        summary_ar="إنشاء أمر إنتاج للطلب {order_id} بكمية {quantity_kg} كغ",
        summary_en="Create production order for order {order_id} ({quantity_kg} kg)",
    ),
    ActionSpec(
        name=ActionName.CREATE_ROLL,
        table="rolls",
        kind=ActionKind.CREATE,
        description="Register a produced roll (production_order_id, weight_kg, machine_id, optional roll_number, employee_id).",
        required=(
            FieldSpec(
                name="production_order_id",
                keys=("production_order_id",),
                label_ar="أمر الإنتاج",
                label_en="production order",
                example_table="production_orders",
                example_column="id",
            ),
            FieldSpec(
                name="weight_kg",
                keys=("weight_kg",),
                label_ar="وزن الرول",
                label_en="roll weight",
            ),
            _MACHINE_REF,
        ),
        identifier=FieldSpec(
            name="roll_number",
            keys=("roll_number",),
            label_ar="رقم الرول",
            label_en="roll number",
        ),
        identifier_prefix="R",
        summary_ar="تسجيل رول جديد للمكينة {machine_id} بوزن {weight_kg} كغ",
        summary_en="Create new roll on machine {machine_id} ({weight_kg} kg)",
    ),
    ActionSpec(
        name=ActionName.CREATE_CUSTOMER,
        table="customers",
        kind=ActionKind.CREATE,
        description="Register a customer (name, phone, optional name_ar, city, address, code).",
        required=(
            FieldSpec(
                name="name",
                keys=("name",),
                label_ar="اسم العميل",
                label_en="customer name",
            ),
            FieldSpec(
                name="phone",
                keys=("phone",),
                label_ar="رقم الهاتف",
                label_en="phone number",
            ),
        ),
        identifier=FieldSpec(
            name="code",
            keys=("id", "code"),
            label_ar="رمز العميل",
            label_en="customer code",
        ),
        identifier_prefix="C",
        summary_ar="إضافة عميل جديد ({name}) هاتف {phone}",
        summary_en="Add new customer ({name}) phone {phone}",
    ),
    ActionSpec(
        name=ActionName.ADD_CUSTOMER_PRODUCT,
        table="customer_products",
        kind=ActionKind.CREATE,
        description="Add a product definition for a customer (customer_id, size_caption, optional width, thickness, raw_material, cutting_unit, is_printed, notes).",
        required=(
            FieldSpec(
                name="customer_id",
                keys=("customer_id",),
                label_ar="معرف العميل",
                label_en="customer ID",
                example_table="customers",
                example_column="id",
            ),
            FieldSpec(
                name="size_caption",
                keys=("size_caption",),
                label_ar="المقاس",
                label_en="size",
            ),
        ),
        summary_ar="إضافة منتج بمقاس {size_caption} للعميل {customer_id}",
        summary_en="Add product {size_caption} for customer {customer_id}",
    ),
    ActionSpec(
        name=ActionName.ADD_MACHINE,
        table="machines",
        kind=ActionKind.CREATE,
        description="Add a machine (name, type: extruder/printer/cutter/quality_check, optional id, name_ar, section_id).",
        required=(
            FieldSpec(
                name="name",
                keys=("name",),
                label_ar="اسم المكينة",
                label_en="machine name",
            ),
            FieldSpec(
                name="type",
                keys=("type",),
                label_ar="نوع المكينة",
                label_en="machine type",
            ),
        ),
        identifier=FieldSpec(
            name="id",
            keys=("id",),
            label_ar="رمز المكينة",
            label_en="machine code",
        ),
        identifier_prefix="M",
        summary_ar="إضافة مكينة جديدة ({name}) من نوع {type}",
        summary_en="Add new machine ({name}) of type {type}",
    ),
    ActionSpec(
        name=ActionName.CREATE_MAINTENANCE,
        table="maintenance_requests",
        kind=ActionKind.CREATE,
        description="Open a maintenance request (machine_id, description, optional request_type, priority, requested_by).",
        required=(
            _MACHINE_REF,
            FieldSpec(
                name="description",
                keys=("description",),
                label_ar="وصف المشكلة",
                label_en="issue description",
            ),
        ),
        notify=True,
        summary_ar="تسجيل بلاغ صيانة للمكينة {machine_id}",
        summary_en="Log maintenance request for machine {machine_id}",
    ),
    ActionSpec(
        name=ActionName.CREATE_QUALITY_CHECK,
        table="quality_checks",
        kind=ActionKind.CREATE,
        description="Record a quality check (target_type: roll/production_order, target_id, optional result pass/fail, score, notes, checked_by).",
        required=(
            FieldSpec(
                name="target_type",
                keys=("target_type",),
                label_ar="نوع العنصر المفحوص",
                label_en="inspected item type",
            ),
            FieldSpec(
                name="target_id",
                keys=("target_id",),
                label_ar="رقم العنصر المفحوص",
                label_en="inspected item ID",
            ),
        ),
        summary_ar="تسجيل فحص جودة على {target_type} رقم {target_id}",
        summary_en="Record quality check on {target_type} {target_id}",
    ),
    ActionSpec(
        name=ActionName.ANALYZE_PERFORMANCE,
        table="production_orders",
        kind=ActionKind.READ,
        description="Summarise current production performance KPIs.",
    ),
    ActionSpec(
        name=ActionName.COUNT_CUSTOMERS,
        table="customers",
        kind=ActionKind.READ,
        description="Count registered customers, optionally filtered by city.",
    ),
    ActionSpec(
        name=ActionName.GENERATE_REPORT,
        table="orders",
        kind=ActionKind.READ,
        description="Produce a text report (report_type: production/quality/maintenance/sales).",
    ),
)


class ActionRegistry:
    def __init__(self, specs: Iterable[ActionSpec] | None = None) -> None:
        self._specs: dict[ActionName, ActionSpec] = {
            spec.name: spec for spec in (DEFAULT_ACTIONS if specs is None else specs)
        }

    def get(self, name: ActionName) -> ActionSpec | None:
        return self._specs.get(name)

    def resolve(self, tag: str | None) -> ActionSpec | None:
        name = ActionName.parse(tag)
        if name is None:
            return None
        return self._specs.get(name)

    def __iter__(self) -> Iterator[ActionSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def catalogue(self) -> str:
        lines = []
        for spec in self:
            kind = "read-only" if not spec.mutating else spec.kind.value
            lines.append(f"- {spec.name.value} ({kind}, table {spec.table}): {spec.description}")
        return "\n".join(lines)


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return "?"


def render_template(template: str, values: dict[str, Any]) -> str:
    """``str.format_map`` that renders unknown placeholders as ``?``."""
    return template.format_map(_Defaults({k: v for k, v in values.items() if v is not None}))
