import io
import logging
from decimal import Decimal

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.http import FileResponse, Http404
from django.shortcuts import get_object_or_404, redirect, render
from django.views.decorators.http import require_POST

from . import conf
from .exceptions import IngestionError, RenderTargetMissing
from .forms import CustomerSelectForm, ManualPaymentForm, StatementConfigForm, TransactionFileForm
from .models import Statement
from .services import generate_and_store, ingest
from .session import StatementSession
from .storage import list_history

logger = logging.getLogger(__name__)


def _form_errors(form):
    return " ".join(str(e) for errors in form.errors.values() for e in errors)


@login_required
def dashboard(request):
    session = StatementSession.load(request)
    config = session.config
    config_form = StatementConfigForm(initial={
        "start_date": config.start_date,
        "end_date": config.end_date,
        "opening_balance": config.opening_balance,
        "operating_unit": config.operating_unit,
    })
    return render(request, "soa/dashboard.html", {
        "upload_form": TransactionFileForm(),
        "payment_form": ManualPaymentForm(),
        "config_form": config_form,
        "customers": session.customers,
        "selected_customer": session.selected_customer,
        "payments": session.manual_transactions_for(session.selected_customer),
        "file_transaction_count": len(session.file_transactions),
        "has_logo": bool(config.logo),
        "history": list_history(request.user),
    })


@login_required
@require_POST
def upload_transactions(request):
    form = TransactionFileForm(request.POST, request.FILES)
    if not form.is_valid():
        messages.error(request, _form_errors(form))
        return redirect("soa:dashboard")

    upload = form.cleaned_data["data_file"]
    try:
        result = ingest(upload.read(), upload.name)
    except IngestionError as exc:
        logger.warning("Ingestion of %s failed at %s: %s", upload.name, exc.stage, exc)
        messages.error(request, str(exc))
        return redirect("soa:dashboard")

    session = StatementSession.load(request)
    session.load_file_transactions(result.transactions)
    session.save(request)
    messages.success(
        request,
        f"Success! Loaded {len(result.transactions)} records. "
        f"Found {len(result.customers)} unique customers.",
    )
    return redirect("soa:dashboard")


@login_required
@require_POST
def select_customer(request):
    form = CustomerSelectForm(request.POST)
    session = StatementSession.load(request)
    if form.is_valid() and form.cleaned_data["customer"] in session.customers:
        session.select_customer(form.cleaned_data["customer"])
        session.save(request)
    else:
        messages.error(request, "Please select a customer from the uploaded file.")
    return redirect("soa:dashboard")


@login_required
@require_POST
def add_payment(request):
    form = ManualPaymentForm(request.POST)
    if not form.is_valid():
        messages.error(request, _form_errors(form))
        return redirect("soa:dashboard")

    session = StatementSession.load(request)
    try:
        session.add_manual_transaction(form.cleaned_data)
    except RenderTargetMissing as exc:
        messages.error(request, str(exc))
        return redirect("soa:dashboard")
    session.save(request)
    messages.success(request, "Payment transaction added.")
    return redirect("soa:dashboard")


@login_required
@require_POST
def delete_payment(request, trx_id):
    session = StatementSession.load(request)
    session.delete_manual_transaction(trx_id)
    session.save(request)
    return redirect("soa:dashboard")


@login_required
@require_POST
def save_config(request):
    form = StatementConfigForm(request.POST, request.FILES)
    if not form.is_valid():
        messages.error(request, _form_errors(form))
        return redirect("soa:dashboard")

    data = form.cleaned_data
    session = StatementSession.load(request)
    changes = {
        "start_date": data["start_date"],
        "end_date": data["end_date"],
        "opening_balance": data["opening_balance"] or Decimal("0"),
        "operating_unit": data["operating_unit"] or "",
    }
    if data.get("logo"):
        changes["logo"] = data["logo"]
    session.update_config(**changes)
    session.save(request)
    messages.success(request, "Configuration Saved!")
    return redirect("soa:dashboard")


@login_required
@require_POST
def reset_logo(request):
    session = StatementSession.load(request)
    session.update_config(logo=conf.get("SOA_DEFAULT_LOGO"))
    session.save(request)
    return redirect("soa:dashboard")


@login_required
@require_POST
def clear_data(request):
    session = StatementSession.load(request)
    session.clear()
    session.save(request)
    messages.success(request, "All data cleared.")
    return redirect("soa:dashboard")


@login_required
@require_POST
def generate_statement(request):
    session = StatementSession.load(request)
    try:
        result = generate_and_store(request.user, session)
    except RenderTargetMissing as exc:
        messages.error(request, str(exc))
        return redirect("soa:dashboard")

    if result.error is not None:
        messages.error(request, "Failed to save statement to cloud.")
    statement = result.statement
    return FileResponse(
        io.BytesIO(statement.content),
        as_attachment=True,
        filename=statement.file_name,
        content_type="application/pdf",
    )


@login_required
def download_statement(request, pk):
    stmt = get_object_or_404(Statement, pk=pk, user=request.user)
    if not stmt.document or not stmt.document.storage.exists(stmt.document.name):
        raise Http404("Statement file is missing")
    return FileResponse(stmt.document.open("rb"), as_attachment=True, filename=stmt.file_name)
