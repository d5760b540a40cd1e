"""
"""

# naming and storage (relative to this file)
data_file = 'data/V4046Sgr_12CO.hdf5'
out_base = 'fitting/V4046Sgr/'
pos0 = 'pos0_standard.npy'

# Model parameters
model = 'standard'
parameters = {'M_star':   1.75,		# [M_sun]
              'r_c':      45.,		# [AU]
              'T_10':     115.,		# [K]
              'q':        0.51,
              'gamma':    1.0,
              'logM_gas': -1.5,		# [M_sun]
              'ksi':      0.31,		# [km/s]
              'dpc':      73.,		# [pc]
              'incl':     33.5,		# [degrees]
              'PA':       76.,		# [degrees]
              'vel':      2.87,		# [km/s]
              'mu_RA':    0.,		# [arcsec]
              'mu_DEC':   0.}		# [arcsec]
fix_params = ['gamma', 'dpc', 'mu_RA', 'mu_DEC']

# search ranges for the optimizer
parameter_ranges = {'M_star': (1.0, 2.5), 'r_c': (10., 150.),
                    'T_10': (30., 300.), 'q': (0.2, 0.8),
                    'logM_gas': (-4., -1.), 'ksi': (0.05, 0.8),
                    'incl': (20., 60.), 'PA': (50., 100.),
                    'vel': (2., 4.)}
dpc_prior = None		# (mean, sigma) [pc]
prior_file = None		# python file defining lnprior(pars, grid)

# RADMC-3D setup
grid = {'nr': 64, 'ntheta': 32, 'r_in': 0.1, 'r_out': 700.}	# [AU]
species = '12CO'
transition = '2-1'
size_arcsec = 12.0		# full field of view [arcsec]
npix = 256			# pixels per side
scratch_dir = None		# defaults to the system temporary directory

# channels contaminated by foreground cloud absorption (km/s)
exclude = [[3.2, 3.6]]

# sampling
samples = 100			# iterations per loop
loops = 20			# loops (checkpoints) per run
stretch_a = 2.0
seed = 42
progress = True

# optimization
MaxFuncEvals = 2000
popsize = 15
