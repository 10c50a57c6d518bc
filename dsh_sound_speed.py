"""
dsh_sound_speed.py
==================
Squared sound speed of hadrons + electrons + photons from the combined EOS.

First derivatives of f (μ_n, μ_p, s) come analytically from the combiner;
the second derivatives are taken numerically from them with
numdifftools. In the (n_B, n_e, T) variables, with n_e = n_p,

    f_nb,nb = ∂μ_n/∂n_n
    f_nb,ne = ∂μ_n/∂n_p - ∂μ_n/∂n_n
    f_ne,ne = ∂μ̃_p/∂n_p + ∂μ_n/∂n_n - ∂μ̃_p/∂n_n - ∂μ_n/∂n_p
    f_nb,T  = ∂μ_n/∂T,   f_ne,T = ∂μ̃_p/∂T - ∂μ_n/∂T,   f_TT = -∂s/∂T

where μ̃_p = μ_p + μ_e. Two ensembles are available:

    cs2_fixYe: adiabatic compression at fixed Y_e
    cs2:       adiabatic compression at fixed lepton chemical potential,
               the electron density adjusting along the path

Units: densities in fm⁻³, T in fm⁻¹; c_s² is dimensionless.
"""
from dataclasses import dataclass

from numdifftools import Derivative

from dsh_eos import dfdnn_total, dfdpn_total, total_energy_density, total_entropy
from dsh_parameters import EOSContext


REL_STEP = 1.0e-3


@dataclass
class SecondDerivatives:
    """Second derivatives of f in (n_B, n_e, T) plus the first-order state."""
    f_nbnb: float
    f_nbne: float
    f_nene: float
    f_nbT: float
    f_neT: float
    f_TT: float
    mub: float      # baryon chemical potential (fm⁻¹, rest mass included)
    mul: float      # lepton (charge) chemical potential
    s: float
    ed: float
    nb: float
    ne: float
    T: float

    @property
    def pr(self) -> float:
        return self.mul * self.ne + self.mub * self.nb + self.T * self.s - self.ed


def _partial(func, context, n_n, n_p, T, wrt, rel_step):
    args = [n_n, n_p, T]
    x0 = args[wrt]

    def one_arg(x):
        a = list(args)
        a[wrt] = x
        return func(context, *a)

    return float(Derivative(one_arg, step=rel_step * x0)(x0))


def second_derivatives(context: EOSContext, n_n: float, n_p: float, T: float,
                       rel_step: float = REL_STEP) -> SecondDerivatives:
    """Mixed second derivatives of f by numerical differentiation of μ and s."""
    dmun = [_partial(dfdnn_total, context, n_n, n_p, T, k, rel_step) for k in range(3)]
    dmup = [_partial(dfdpn_total, context, n_n, n_p, T, k, rel_step) for k in range(3)]
    dsdT = _partial(total_entropy, context, n_n, n_p, T, 2, rel_step)

    mun = dfdnn_total(context, n_n, n_p, T)
    mup = dfdpn_total(context, n_n, n_p, T)

    return SecondDerivatives(
        f_nbnb=dmun[0],
        f_nbne=dmun[1] - dmun[0],
        f_nene=dmup[1] + dmun[0] - dmup[0] - dmun[1],
        f_nbT=dmun[2],
        f_neT=dmup[2] - dmun[2],
        f_TT=-dsdT,
        mub=mun,
        mul=mup - mun,
        s=total_entropy(context, n_n, n_p, T),
        ed=total_energy_density(context, n_n, n_p, T),
        nb=n_n + n_p,
        ne=n_p,
        T=T,
    )


def cs2_fixYe(context: EOSContext, n_n: float, n_p: float, T: float,
              rel_step: float = REL_STEP) -> float:
    """Squared adiabatic sound speed at fixed electron fraction."""
    d = second_derivatives(context, n_n, n_p, T, rel_step)
    nb, ne, s = d.nb, d.ne, d.s

    dPdnb = d.f_nbnb * nb + d.f_nbne * ne
    dPdne = d.f_nbne * nb + d.f_nene * ne
    dPdT = d.f_nbT * nb + d.f_neT * ne + s

    num = (-nb * dPdnb * d.f_TT - ne * dPdne * d.f_TT
           + dPdT * (d.f_nbT * nb + d.f_neT * ne + s))
    return num / ((d.pr + d.ed) * (-d.f_TT))


def cs2(context: EOSContext, n_n: float, n_p: float, T: float,
        rel_step: float = REL_STEP) -> float:
    """Squared adiabatic sound speed at fixed lepton chemical potential."""
    d = second_derivatives(context, n_n, n_p, T, rel_step)
    nb, ne, s = d.nb, d.ne, d.s
    fTT, fnene, fneT, fnbT, fnbne, fnbnb = (d.f_TT, d.f_nene, d.f_neT,
                                            d.f_nbT, d.f_nbne, d.f_nbnb)

    dSdT = (-fTT * fnene + fneT * fneT) / fnene
    dSdV = (s * fnene + fneT * fnene * ne + fnbT * fnene * nb
            - fneT * fnene * ne - fneT * fnbne * nb) / fnene
    dpdVT = (-fnbnb * fnene + fnbne * fnbne) * nb * nb / fnene
    dpdTV = dSdV
    dpdVS = (dpdVT * dSdT - dpdTV * dSdV) / dSdT

    dNedV = ((fTT * (fnene * ne + fnbne * nb) - (fneT * ne + fnbT * nb) * fneT)
             / (-fneT * fneT + fTT * fnene))
    deps = -d.pr - d.ed + d.mul * dNedV
    return dpdVS / deps


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("cs2 and cs2_fixYe need a context with a selected model;")
    print("see dsh_model_selection.py for an example run.")
