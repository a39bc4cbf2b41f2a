"""Built-in unit registry.

All table values are converted to SI base units (m, kg, s, A, K, mol, cd)
and SI derived units when they are postprocessed. ``UNIT_MULTIPLIERS`` maps
a unit symbol to the size of one unit in internal units. Units that are not
a plain scale factor (temperature scales) live in ``UNIT_LAMBDAS`` as
functions ``f(x, to_internal) -> float``.
"""

import math
from collections.abc import Callable

# Base and time units
SECOND = 1.0
MINUTE = 60.0 * SECOND
HOUR = 3600.0 * SECOND
DAY = 86400.0 * SECOND
YEAR = 365.25 * DAY  # Julian year
CENTURY = 36525.0 * DAY

METER = 1.0
KM = 1000.0 * METER
AU = 149597870700.0 * METER
LIGHT_YEAR = 9460730472580800.0 * METER
PARSEC = 648000.0 / math.pi * AU

KG = 1.0
GRAM = 0.001 * KG
TONNE = 1000.0 * KG

AMPERE = 1.0
KELVIN = 1.0
MOLE = 1.0
CANDELA = 1.0

RADIAN = 1.0
DEGREE = math.pi / 180.0 * RADIAN
ARCMIN = DEGREE / 60.0
ARCSEC = DEGREE / 3600.0
STERADIAN = 1.0

# Derived units
HERTZ = 1.0 / SECOND
NEWTON = KG * METER / (SECOND * SECOND)
PASCAL = NEWTON / (METER * METER)
BAR = 1e5 * PASCAL
ATM = 101325.0 * PASCAL
JOULE = NEWTON * METER
WATT = JOULE / SECOND
COULOMB = AMPERE * SECOND
VOLT = WATT / AMPERE
OHM = VOLT / AMPERE
TESLA = KG / (AMPERE * SECOND * SECOND)
GAUSS = 1e-4 * TESLA
ELECTRONVOLT = 1.602176634e-19 * JOULE
LITER = 0.001 * METER**3

# Physical constants
GRAVITATIONAL_CONSTANT = 6.67430e-11 * METER**3 / (KG * SECOND * SECOND)
STANDARD_GRAVITY = 9.80665 * METER / (SECOND * SECOND)
SPEED_OF_LIGHT = 299792458.0 * METER / SECOND
SOLAR_MASS = 1.98847e30 * KG
EARTH_MASS = 5.9722e24 * KG
JUPITER_MASS = 1.89813e27 * KG

UNIT_MULTIPLIERS: dict[str, float] = {
    # time
    "s": SECOND,
    "min": MINUTE,
    "h": HOUR,
    "d": DAY,
    "a": YEAR,
    "y": YEAR,
    "yr": YEAR,
    "Cy": CENTURY,
    "ms": 1e-3 * SECOND,
    "us": 1e-6 * SECOND,
    "ns": 1e-9 * SECOND,
    # length
    "m": METER,
    "mm": 1e-3 * METER,
    "cm": 1e-2 * METER,
    "um": 1e-6 * METER,
    "nm": 1e-9 * METER,
    "km": KM,
    "au": AU,
    "AU": AU,
    "ly": LIGHT_YEAR,
    "pc": PARSEC,
    "kpc": 1e3 * PARSEC,
    "Mpc": 1e6 * PARSEC,
    # mass
    "g": GRAM,
    "kg": KG,
    "t": TONNE,
    "Mt": 1e6 * TONNE,
    "Gt": 1e9 * TONNE,
    "M_sun": SOLAR_MASS,
    "M_earth": EARTH_MASS,
    "M_jup": JUPITER_MASS,
    # angle
    "rad": RADIAN,
    "deg": DEGREE,
    "arcmin": ARCMIN,
    "arcsec": ARCSEC,
    "sr": STERADIAN,
    # frequency and rates
    "Hz": HERTZ,
    "kHz": 1e3 * HERTZ,
    "MHz": 1e6 * HERTZ,
    "GHz": 1e9 * HERTZ,
    "rpm": 2.0 * math.pi / MINUTE,
    # area and volume
    "ha": 1e4 * METER * METER,
    "L": LITER,
    "l": LITER,
    # speed and acceleration
    "km/s": KM / SECOND,
    "km/h": KM / HOUR,
    "c": SPEED_OF_LIGHT,
    "_g": STANDARD_GRAVITY,
    # force, pressure, energy, power
    "N": NEWTON,
    "kN": 1e3 * NEWTON,
    "Pa": PASCAL,
    "kPa": 1e3 * PASCAL,
    "MPa": 1e6 * PASCAL,
    "GPa": 1e9 * PASCAL,
    "bar": BAR,
    "atm": ATM,
    "J": JOULE,
    "kJ": 1e3 * JOULE,
    "MJ": 1e6 * JOULE,
    "GJ": 1e9 * JOULE,
    "Wh": WATT * HOUR,
    "kWh": 1e3 * WATT * HOUR,
    "eV": ELECTRONVOLT,
    "keV": 1e3 * ELECTRONVOLT,
    "MeV": 1e6 * ELECTRONVOLT,
    "W": WATT,
    "kW": 1e3 * WATT,
    "MW": 1e6 * WATT,
    "GW": 1e9 * WATT,
    # electromagnetism
    "A": AMPERE,
    "C": COULOMB,
    "V": VOLT,
    "kV": 1e3 * VOLT,
    "Ohm": OHM,
    "T": TESLA,
    "G": GAUSS,
    # temperature intervals
    "K": KELVIN,
    # amount and luminosity
    "mol": MOLE,
    "cd": CANDELA,
    # gravitational parameter
    "km^3/s^2": KM**3 / (SECOND * SECOND),
    "m^3/s^2": METER**3 / (SECOND * SECOND),
}


def _celsius(x: float, to_internal: bool) -> float:
    return x + 273.15 if to_internal else x - 273.15


def _fahrenheit(x: float, to_internal: bool) -> float:
    if to_internal:
        return (x + 459.67) * (5.0 / 9.0)
    return x * (9.0 / 5.0) - 459.67


UNIT_LAMBDAS: dict[str, Callable[[float, bool], float]] = {
    "degC": _celsius,
    "degF": _fahrenheit,
}
