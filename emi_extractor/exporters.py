"""Export module: plan documents, Excel/XML exports and console summaries."""
import os
import re
import json
import logging
import xml.etree.ElementTree as ET
import xml.dom.minidom
from typing import Any, Dict, List

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font

from .models import ACTIVE, COMPLETED, EMIPlan
from .utils import money

logger = logging.getLogger(__name__)


def build_plans_document(plans: List[EMIPlan]) -> Dict[str, Any]:
    """Aggregate counters plus the finalized plans, in the order given."""
    total_financed = sum(p.amount_financed for p in plans)
    total_interest = sum(p.total_interest for p in plans)
    total_gst = sum(p.total_gst for p in plans)
    return {
        'totalPlans': len(plans),
        'activePlans': sum(1 for p in plans if p.status == ACTIVE),
        'completedPlans': sum(1 for p in plans if p.status == COMPLETED),
        'totalAmountFinanced': money(total_financed),
        'totalInterestPaid': money(total_interest),
        'totalGSTPaid': money(total_gst),
        'emiPlans': [p.to_dict() for p in plans],
    }


def write_json(document: Dict[str, Any], output_path: str) -> str:
    output_dir = os.path.dirname(output_path)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(document, f, ensure_ascii=False, indent=4)
        f.write("\n")
    logger.info(f"Saved {output_path}")
    return output_path


def read_json(input_path: str) -> Any:
    with open(input_path, "r", encoding="utf-8") as f:
        return json.load(f)


def export_plans_excel(document: Dict[str, Any], output_path: str) -> str:
    """Write the plan document to a workbook with a plans sheet and an installments sheet."""
    wb = Workbook()
    header_font = Font(bold=True)

    plans_ws = wb.active
    plans_ws.title = "EMI Plans"
    plans_ws.column_dimensions['A'].width = 35  # Merchant
    plans_ws.column_dimensions['B'].width = 15  # Bank

    summary_rows = [
        ("Total Plans", document['totalPlans']),
        ("Active Plans", document['activePlans']),
        ("Completed Plans", document['completedPlans']),
        ("Amount Financed", document['totalAmountFinanced']),
        ("Interest Paid", document['totalInterestPaid']),
        ("GST Paid", document['totalGSTPaid']),
    ]
    current_row = 1
    for label, value in summary_rows:
        plans_ws.cell(row=current_row, column=1, value=label).font = header_font
        plans_ws.cell(row=current_row, column=2, value=value)
        current_row += 1
    current_row += 1  # Blank row before the table

    headers = ['Merchant', 'Bank', 'Card', 'Plan', 'Tenure', 'Paid', 'Remaining', 'Status',
               'Amount Financed', 'Interest', 'GST', 'Total', 'Monthly EMI', 'First Date', 'Last Date']
    for col, header in enumerate(headers, 1):
        plans_ws.cell(row=current_row, column=col, value=header).font = header_font

    money_columns = {9, 10, 11, 12, 13}
    for row_idx, plan in enumerate(document['emiPlans'], current_row + 1):
        values = [plan['merchant'], plan['card_bank'], plan['card_last4'], plan['sequence_index'],
                  plan['total_installments'], plan['installments_paid'], plan['remaining_installments'],
                  plan['status'], plan['amount_financed'], plan['total_interest'], plan['total_gst'],
                  plan['total_amount'], plan['monthly_emi'], plan['first_installment_date'],
                  plan['last_installment_date']]
        for col, value in enumerate(values, 1):
            cell = plans_ws.cell(row=row_idx, column=col, value=value)
            if col in money_columns:
                cell.number_format = '#,##0.00'

    inst_ws = wb.create_sheet("Installments")
    inst_headers = ['Plan ID', 'Date', 'Installment', 'Principal', 'Interest', 'GST', 'Total']
    for col, header in enumerate(inst_headers, 1):
        inst_ws.cell(row=1, column=col, value=header).font = header_font
    row_idx = 2
    for plan in document['emiPlans']:
        for inst in plan['installments']:
            inst_ws.cell(row=row_idx, column=1, value=plan['plan_id'])
            inst_ws.cell(row=row_idx, column=2, value=inst['date'])
            inst_ws.cell(row=row_idx, column=3,
                         value=f"{inst['installment_number']}/{inst['total_installments']}")
            for col, key in enumerate(['principal', 'interest', 'gst', 'total_amount'], 4):
                inst_ws.cell(row=row_idx, column=col, value=inst[key]).number_format = '#,##0.00'
            row_idx += 1

    wb.save(output_path)
    logger.info(f"Successfully exported {len(document['emiPlans'])} plan(s) to {output_path}")
    return output_path


def _xml_tag(key: str) -> str:
    tag_name = re.sub(r'\s+', '_', key).strip()
    tag_name = re.sub(r'[^a-zA-Z0-9_.-]', '', tag_name)
    if not tag_name or not (tag_name[0].isalpha() or tag_name[0] == '_'):
        tag_name = '_' + tag_name
    return tag_name


def _xml_text(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value) if value is not None else ""


def export_plans_xml(document: Dict[str, Any], output_path: str) -> str:
    root = ET.Element("EMIPlans")
    summary_elem = ET.SubElement(root, "Summary")
    for key, value in document.items():
        if key != 'emiPlans':
            ET.SubElement(summary_elem, _xml_tag(key)).text = _xml_text(value)

    for plan in document['emiPlans']:
        plan_elem = ET.SubElement(root, "Plan")
        plan_elem.set('id', plan['plan_id'])
        for key, value in plan.items():
            if key in ('plan_id', 'installments'):
                continue
            ET.SubElement(plan_elem, _xml_tag(key)).text = _xml_text(value)
        installments_elem = ET.SubElement(plan_elem, "Installments")
        for inst in plan['installments']:
            inst_elem = ET.SubElement(installments_elem, "Installment")
            for key, value in inst.items():
                ET.SubElement(inst_elem, _xml_tag(key)).text = _xml_text(value)

    rough_string = ET.tostring(root, 'utf-8')
    reparsed = xml.dom.minidom.parseString(rough_string)
    with open(output_path, "wb") as f:
        f.write(reparsed.toprettyxml(indent="  ", encoding='utf-8'))

    logger.info(f"Successfully exported data to {output_path}")
    return output_path


def _rupees(value: float) -> str:
    return f"₹{value:,.2f}"


def print_plan_summary(document: Dict[str, Any]) -> None:
    """Human readable summary of a plan document on stdout."""
    print("━" * 60)
    print("EMI Extraction Complete!")
    print(f"Total EMI Plans: {document['totalPlans']}")
    print(f"   Active: {document['activePlans']}")
    print(f"   Completed: {document['completedPlans']}")
    print("\nFinancial Summary:")
    print(f"   Amount Financed: {_rupees(document['totalAmountFinanced'])}")
    print(f"   Interest Paid: {_rupees(document['totalInterestPaid'])}")
    print(f"   GST Paid: {_rupees(document['totalGSTPaid'])}")
    total_cost = document['totalAmountFinanced'] + document['totalInterestPaid'] + document['totalGSTPaid']
    print(f"   Total Cost: {_rupees(total_cost)}")

    if not document['emiPlans']:
        print("\nNo EMI plans found.")
        return

    table = pd.DataFrame([{
        'Merchant': plan['merchant'],
        'Card': f"{plan['card_bank']} *{plan['card_last4']}",
        'Financed': plan['amount_financed'],
        'Paid': f"{plan['installments_paid']}/{plan['total_installments']}",
        'Monthly EMI': plan['monthly_emi'],
        'Status': 'Active' if plan['status'] == ACTIVE else 'Completed',
    } for plan in document['emiPlans']])
    print("\nEMI Plans:\n")
    print(table.to_string(index=False, float_format=lambda v: f"{v:,.2f}"))


def print_enrichment_summary(summary: Dict[str, Any], enriched: List[Dict[str, Any]], top: int = 3) -> None:
    print("Enrichment Summary:")
    print("━" * 60)
    print(f"Total Plans:              {summary['totalPlans']}")
    print(f"Active Plans:             {summary['activePlans']}")
    print(f"Completed Plans:          {summary['completedPlans']}")
    print(f"Total Monthly Burden:     {_rupees(summary['totalMonthlyBurden'])}")
    print(f"Total Remaining Cost:     {_rupees(summary['totalRemainingCost'])}")
    print(f"Average Interest Rate:    {summary['averageInterestRate']:.2f}%")
    print(f"High Priority Closures:   {summary['highPriorityClosures']}")
    print("\nCategory Breakdown:")
    for category, count in summary['categoryBreakdown'].items():
        print(f"  {category:<20} {count}")
    print("━" * 60)

    active = [e for e in enriched if e['status'] == ACTIVE]
    if not active:
        return
    print("\nTop Priority EMIs for Closure:")
    for i, e in enumerate(active[:top], 1):
        print(f"\n{i}. {e['merchant_clean']} ({e['card_bank']})")
        print(f"   Priority Score:    {e['priority_score']}/100")
        print(f"   Monthly EMI:       {_rupees(e['monthly_emi'])}")
        print(f"   Remaining Cost:    {_rupees(e['cost_analysis']['remaining_cost'])}")
        print(f"   Interest Rate:     {e['effective_interest_rate']:.2f}%")
        print(f"   Progress:          {e['completion_percentage']}%")
        print("   Recommendations:")
        for rec in e['recommendations']:
            print(f"     {rec}")
