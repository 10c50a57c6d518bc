"""
dsh_parameters.py
=================
Model parameters and evaluation context of the combined
virial + Skyrme + QMC + neutron-star EOS.

An `EOSContext` bundles configuration (switching-function coefficients,
fit options, input tables, fixed virial and chiral Skyrme sets) with an
optional `SelectedModel`. A context without a model is "unselected" and
cannot be evaluated; model selection returns a new context with the
model attached, never modifying the input one.
"""
from dataclasses import dataclass, field
from typing import Optional

from general_physics_constants import m_neutron_fm, m_proton_fm
from virial_coefficients import VirialCoefficients, get_virial_default
from skyrme_parameters import SkyrmeParams, get_skyrme_chiral
from dsh_qmc_neutron_matter import QMCParams
from dsh_neutron_star_extension import NeutronStarFit, HighDensityExtension
from dsh_data_tables import EOSTables


# =============================================================================
# EXCEPTIONS
# =============================================================================
class ModelNotSelectedError(RuntimeError):
    """Evaluation requested on a context without a selected model."""


class UnphysicalResultError(ArithmeticError):
    """A validated model produced a non-finite or acausal/unstable value."""


# =============================================================================
# PARAMETERS
# =============================================================================
@dataclass(frozen=True)
class ModelParameters:
    """
    The seven free parameters of one EOS model.

    Attributes:
        i_ns: Row of the neutron-star table
        i_skyrme: Row of the Skyrme table
        qmc_alpha: QMC exponent α
        qmc_a: QMC coefficient a (MeV)
        eos_L: Slope of the symmetry energy (MeV)
        eos_S: Symmetry energy (MeV)
        phi: Squared sound speed at n_B = 2 fm⁻³
    """
    i_ns: int
    i_skyrme: int
    qmc_alpha: float = 0.48
    qmc_a: float = 12.7
    eos_L: float = 50.0
    eos_S: float = 32.0
    phi: float = 0.5


@dataclass(frozen=True)
class SelectedModel:
    """Everything derived from ModelParameters by a successful validation."""
    params: ModelParameters
    qmc: QMCParams
    skyrme: SkyrmeParams
    ns_fit: NeutronStarFit
    extension: HighDensityExtension
    eos_n0: float
    eos_EoA: float
    eos_K: float


@dataclass(frozen=True)
class EOSContext:
    """
    Configuration plus (optionally) a selected model.

    Attributes:
        tables: Neutron-star and Skyrme input tables
        virial: Virial coefficient parameters
        skyrme_chiral: Skyrme set for the thermal part
        a_virial, b_virial: Coefficients of the virial switching function
        old_ns_fit: Use the √n form of the neutron-star fit
        include_muons: Add muons in equilibrium with electrons
        select_cs2_test: Run the sound-speed battery during selection
        verbose: 0 silent, 1 selection steps, 2 per-call virial coefficients
        m_n, m_p: Nucleon masses (fm⁻¹)
        model: Selected model, None when unselected
    """
    tables: Optional[EOSTables] = None
    virial: VirialCoefficients = field(default_factory=get_virial_default)
    skyrme_chiral: SkyrmeParams = field(default_factory=get_skyrme_chiral)
    a_virial: float = 3.0
    b_virial: float = 0.0
    old_ns_fit: bool = True
    include_muons: bool = False
    select_cs2_test: bool = True
    verbose: int = 0
    m_n: float = m_neutron_fm
    m_p: float = m_proton_fm
    model: Optional[SelectedModel] = None

    @property
    def model_selected(self) -> bool:
        return self.model is not None

    def require_model(self) -> SelectedModel:
        if self.model is None:
            raise ModelNotSelectedError("No model selected.")
        return self.model


def get_context_default(tables: EOSTables = None, **kwargs) -> EOSContext:
    """Unselected context with default configuration."""
    return EOSContext(tables=tables, **kwargs)


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    ctx = get_context_default()
    print("EOS context (default)")
    print("=" * 50)
    print(f"  a_virial = {ctx.a_virial}, b_virial = {ctx.b_virial}")
    print(f"  old_ns_fit = {ctx.old_ns_fit}, include_muons = {ctx.include_muons}")
    print(f"  model selected: {ctx.model_selected}")
    try:
        ctx.require_model()
    except ModelNotSelectedError as exc:
        print(f"  require_model -> {exc}")
