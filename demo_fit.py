import sys
from diskfit.fit import run

# Sample the posteriors (pass run_index=N to continue an interrupted run N)
if 'mpi' in sys.argv:
    # mpirun -n 32 python demo_fit.py mpi
    run('configs/mconfig_standard.py', mpi=True)
else:
    run('configs/mconfig_standard.py', processes=8)

# Or search for the best-fit parameters instead
# run('configs/mconfig_standard.py', optim=True, processes=8)
