import numpy as np
import pytest
from scipy.integrate import trapezoid
from diskfit.const import AU, M_sun
from diskfit.errors import ModelException
from diskfit.parameters import registered_params, convert_vector, \
    fit_params, load_prior, ParametersStandard, ParametersTruncated
from diskfit.radmc_disk import radmc_grid
from conftest import standard_values, grid_args


truncated_values = dict(standard_values, r_in=1., r_out=100., gamma_e=3.)
del truncated_values['r_c']


def test_free_parameters_keep_registered_order():
    free = fit_params('standard', ['q', 'M_star'])
    assert free == [p for p in registered_params['standard']
                    if p not in ('q', 'M_star')]


def test_convert_standard():
    fixed = [p for p in standard_values if p not in ('r_c', 'incl')]
    pars = convert_vector([50., 30.], 'standard', fixed, **standard_values)
    assert isinstance(pars, ParametersStandard)
    assert pars.r_c == 50. and pars.incl == 30.
    assert pars.T_10 == standard_values['T_10']


def test_convert_truncated():
    pars = convert_vector([truncated_values[p] for p in
                           registered_params['truncated']], 'truncated', [])
    assert isinstance(pars, ParametersTruncated)
    assert pars.gamma_e == 3.


@pytest.mark.parametrize('name, value', [('M_star', 0.), ('r_c', -5.),
                                         ('T_10', -1.), ('ksi', 0.),
                                         ('q', 2.), ('gamma', 2.5),
                                         ('dpc', np.nan)])
def test_convert_rejects(name, value):
    fixed = [p for p in standard_values if p != name]
    with pytest.raises(ModelException):
        convert_vector([value], 'standard', fixed, **standard_values)


def test_convert_wrong_length():
    with pytest.raises(ModelException):
        convert_vector([1., 2., 3.], 'standard', [], **standard_values)


def test_convert_missing_fixed_value():
    with pytest.raises(ModelException, match='no value'):
        convert_vector(np.ones(12), 'standard', ['r_c'])


def test_unknown_model():
    with pytest.raises(ValueError):
        fit_params('spiral', [])


def test_truncated_edges_must_be_ordered():
    values = dict(truncated_values, r_in=200.)
    with pytest.raises(ModelException):
        convert_vector([], 'truncated', list(values), **values)


def test_lnprior_sin_incl():
    grid = radmc_grid(grid_args)
    pars = ParametersStandard(**dict(standard_values, incl=90.))
    assert pars.lnprior(grid) == pytest.approx(0.)
    pars = ParametersStandard(**dict(standard_values, incl=30.))
    assert pars.lnprior(grid) == pytest.approx(np.log(0.5))


def test_lnprior_distance_prior():
    grid = radmc_grid(grid_args)
    pars = ParametersStandard(**dict(standard_values, incl=90., dpc=110.))
    assert pars.lnprior(grid, dpc_prior=(100., 10.)) == pytest.approx(-0.5)


@pytest.mark.parametrize('incl', [0., 180., -10.])
def test_lnprior_rejects_inclination(incl):
    grid = radmc_grid(grid_args)
    pars = ParametersStandard(**dict(standard_values, incl=incl))
    with pytest.raises(ModelException):
        pars.lnprior(grid)


def test_lnprior_rejects_disk_beyond_grid():
    grid = radmc_grid(grid_args)
    pars = ParametersStandard(**dict(standard_values, r_c=400.))
    with pytest.raises(ModelException):
        pars.lnprior(grid)


def test_standard_mass_normalization():
    pars = ParametersStandard(**standard_values)
    r = np.logspace(-3, 4, 20000) * AU
    mass = trapezoid(2 * np.pi * r * pars.sigma(r), r)
    assert mass == pytest.approx(10**pars.logM_gas * M_sun, rel=1e-3)


def test_truncated_mass_normalization():
    pars = ParametersTruncated(**truncated_values)
    r = np.linspace(pars.r_in, pars.r_out, 200001) * AU
    mass = trapezoid(2 * np.pi * r * pars.sigma(r), r)
    assert mass == pytest.approx(10**pars.logM_gas * M_sun, rel=1e-3)
    assert pars.sigma(np.array([0.5 * AU]))[0] == 0.


def test_temperature_at_10AU():
    pars = ParametersStandard(**standard_values)
    assert pars.temperature(10. * AU) == pytest.approx(pars.T_10)


def test_user_prior(tmp_path):
    fname = str(tmp_path / 'prior_user.py')
    with open(fname, 'w') as f:
        f.write('def lnprior(pars, grid):\n    return -pars.M_star\n')
    lnprior = load_prior(fname)
    pars = ParametersStandard(**standard_values)
    assert lnprior(pars, None) == -1.0
    assert load_prior(fname) is lnprior
