"""
Comparison routes for Statecheck.

Exposes the configuration state comparator over HTTP.
"""
import logging

from fastapi import APIRouter, HTTPException

from core import (
    compare_state,
    group_diagnostics_by_signature,
    load_declared,
    StatecheckError,
)
from api.schemas import (
    ComparisonRequest,
    ComparisonResponse,
    DiagnosticSchema,
    DriftGroup,
    FleetComparisonRequest,
    FleetComparisonResponse,
    NodeVerdict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _declared_from_request(declared: dict, kinds: dict, allowed_keys=None):
    try:
        return load_declared(declared, allowed_keys=allowed_keys, kinds=kinds)
    except StatecheckError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("", response_model=ComparisonResponse)
async def compare_configs(request: ComparisonRequest):
    """
    Compare an observed configuration with a declared one.
    """
    declared = _declared_from_request(request.declared, request.kinds, request.allowed_keys)

    try:
        result = compare_state(request.observed, declared, request.keys_to_check)
    except StatecheckError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ComparisonResponse(
        in_desired_state=result.in_desired_state,
        checked_keys=result.checked_keys,
        diagnostic_count=result.diagnostic_count,
        diagnostics=[DiagnosticSchema(**d.to_dict()) for d in result.diagnostics]
    )


@router.post("/fleet", response_model=FleetComparisonResponse)
async def compare_fleet(request: FleetComparisonRequest):
    """
    Compare many nodes against one declared configuration.

    Identical drift on several nodes is reported once with the node list.
    """
    declared = _declared_from_request(request.declared, request.kinds)

    verdicts = []
    diagnostics_with_nodes = []
    for node, observed in request.nodes.items():
        try:
            result = compare_state(observed, declared, request.keys_to_check)
        except StatecheckError as e:
            raise HTTPException(status_code=400, detail=str(e))

        verdicts.append(NodeVerdict(
            node=node,
            in_desired_state=result.in_desired_state,
            diagnostic_count=result.diagnostic_count
        ))
        diagnostics_with_nodes.extend((node, d) for d in result.diagnostics)

    grouped = group_diagnostics_by_signature(diagnostics_with_nodes)
    compliant = sum(1 for v in verdicts if v.in_desired_state)
    logger.info(f"Fleet comparison: {compliant}/{len(verdicts)} node(s) in desired state")

    return FleetComparisonResponse(
        compliant_nodes=compliant,
        drifted_nodes=len(verdicts) - compliant,
        verdicts=verdicts,
        drift=[
            DriftGroup(diagnostic=DiagnosticSchema(**group["diagnostic"].to_dict()), nodes=group["nodes"])
            for group in grouped.values()
        ]
    )
