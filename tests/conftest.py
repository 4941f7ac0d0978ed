import matplotlib

# no windows during the tests, figures are closed by funct.options
matplotlib.use('Agg')
