"""
Packaging script for PyPI.
"""
import setuptools

setuptools.setup(
	name='unhoist',
	version='0.1.0',
	packages=['unhoist'],
	entry_points={
		'console_scripts': ["unhoist = unhoist.cmdline:main"],
	},
	license='MIT',
	description='Rewrites JavaScript var declarations as let or const wherever that cannot change behavior',
	long_description=open('README.md').read(),
	long_description_content_type="text/markdown",
	classifiers=[
		"Programming Language :: Python :: 3.9",
		"License :: OSI Approved :: MIT License",
		"Operating System :: OS Independent",
		"Development Status :: 3 - Alpha",
		"Intended Audience :: Developers",
		"Topic :: Software Development :: Compilers",
		"Topic :: Software Development :: Quality Assurance",
		"Environment :: Console",
    ],
	python_requires='>=3.9',
	install_requires=[
		"booze-tools>=0.6.2.1",
		"esprima>=4.0.1",
	]
)
