# This file is part of Recombinase.
# Licensed under MIT License.

"""Inference options and logging configuration.

Options are declared once in YAML.  The same declaration drives defaults,
type conversion, and the argparse groups that a front end can mount with
:meth:`InferenceParameters.add_arguments`.
"""

import argparse
import logging
from collections import OrderedDict

import yaml

# Safe type lookup for YAML-defined options
_SAFE_TYPES = {
    'int': int,
    'float': float,
    'str': str,
    'bool': bool,
    "argparse.FileType('w')": argparse.FileType('w'),
}


class InferenceParameters:
    OPTS = """
    - Inference Options:
        - min_likelihood:
            type: float
            default: 1.0e-60
            help: Recombination events less likely than this are discarded.
        - min_likelihood_error:
            type: float
            default: 1.0e-60
            help: Lower bound on the likelihood of the observed number of sequencing errors.
        - nb_best_events:
            type: int
            default: 10
            help: Number of most likely events reported per sequence. 0 disables the ranking.
        - ncpu:
            type: int
            default: 1
            help: Number of worker processes used for a batch of sequences.
    - Reporting Options:
        - quiet:
            action: store_true
            help: Silence all output.
        - verbose:
            action: store_true
            help: Print verbose messages.
        - debug:
            action: store_true
            help: Print debug messages.
        - logfile:
            type: argparse.FileType('w')
            help: Log output to this file.
    """

    def __init__(self, **kwargs):
        self.opt_names, self.opt_groups = self._parse_yaml_opts(self.OPTS)
        unknown = set(kwargs) - set(self.opt_names)
        if unknown:
            raise ValueError(f'Unknown inference option(s): {sorted(unknown)}')
        for args in self.opt_groups.values():
            for arg_name, arg_d in args.items():
                value = kwargs.get(arg_name, arg_d.get('default'))
                if arg_d.get('action') == 'store_true':
                    value = bool(value)
                elif value is not None and arg_d.get('type') in ('int', 'float'):
                    value = _SAFE_TYPES[arg_d['type']](value)
                setattr(self, arg_name, value)
        self._validate()

    def _validate(self):
        if not self.min_likelihood >= 0:
            raise ValueError(f'min_likelihood must be non-negative, got {self.min_likelihood}')
        if not self.min_likelihood_error >= 0:
            raise ValueError(f'min_likelihood_error must be non-negative, got {self.min_likelihood_error}')
        if self.nb_best_events < 0:
            raise ValueError(f'nb_best_events must be non-negative, got {self.nb_best_events}')
        if self.ncpu < 1:
            raise ValueError(f'ncpu must be at least 1, got {self.ncpu}')

    @classmethod
    def from_args(cls, args):
        """Build from an argparse namespace, ignoring unrelated attributes."""
        opt_names, _ = cls._parse_yaml_opts(cls.OPTS)
        return cls(**{k: v for k, v in vars(args).items() if k in opt_names and v is not None})

    @classmethod
    def from_yaml(cls, document):
        """Build from a YAML mapping given as a string or an open stream."""
        data = yaml.load(document, Loader=yaml.SafeLoader) or {}
        if not isinstance(data, dict):
            raise ValueError(f'Expected a mapping of inference options, got {type(data).__name__}')
        return cls(**data)

    @classmethod
    def add_arguments(cls, parser):
        opt_names, opt_groups = cls._parse_yaml_opts(cls.OPTS)
        for group_name, args in opt_groups.items():
            argparse_grp = parser.add_argument_group(group_name, '')
            for arg_name, arg_d in args.items():
                _d = dict(arg_d)
                if len(arg_name) == 1:
                    _arg_name = f'-{arg_name}'
                else:
                    _arg_name = f'--{arg_name}'

                if 'type' in _d:
                    _type_str = _d['type']
                    if _type_str not in _SAFE_TYPES:
                        raise ValueError(
                            f"Unsupported type '{_type_str}' in option '{arg_name}'. "
                            f'Allowed: {list(_SAFE_TYPES.keys())}'
                        )
                    _d['type'] = _SAFE_TYPES[_type_str]

                argparse_grp.add_argument(_arg_name, **_d)

    @staticmethod
    def _parse_yaml_opts(opts_yaml):
        _opt_names = []
        _opt_groups = OrderedDict()
        for grp in yaml.load(opts_yaml, Loader=yaml.SafeLoader):
            grp_name, args = list(grp.items())[0]
            _opt_groups[grp_name] = OrderedDict()
            for arg in args:
                arg_name, d = list(arg.items())[0]
                _opt_groups[grp_name][arg_name] = d
                _opt_names.append(arg_name)
        return _opt_names, _opt_groups

    def __getstate__(self):
        # Open log handles do not survive a trip to a worker process
        state = dict(self.__dict__)
        state['logfile'] = None
        return state

    def __str__(self):
        ret = []
        for group_name, args in self.opt_groups.items():
            ret.append(f'{group_name}')
            for arg_name in args:
                v = getattr(self, arg_name, 'Not set')
                v = v.name if hasattr(v, 'name') else v
                ret.append('    {:30}{}'.format(arg_name + ':', v))
        return '\n'.join(ret)


def configure_logging(opts):
    """Configure logging from the "quiet", "verbose", "debug" and "logfile"
    attributes of *opts*.
    """
    _quiet = getattr(opts, 'quiet', False)
    _verbose = getattr(opts, 'verbose', False)
    _debug = getattr(opts, 'debug', False)

    if _debug:
        loglev = logging.DEBUG
        logfmt = '%(asctime)s %(levelname)-8s %(message)-60s (%(funcName)s in %(filename)s:%(lineno)d)'
    elif _verbose:
        loglev = logging.INFO
        logfmt = '%(asctime)s %(levelname)-8s %(message)s'
    elif _quiet:
        loglev = logging.ERROR
        logfmt = '%(asctime)s %(levelname)-8s %(message)s'
    else:
        loglev = logging.WARNING
        logfmt = '%(asctime)s %(levelname)-8s %(message)s'

    logging.basicConfig(
        level=loglev, format=logfmt, datefmt='%Y-%m-%d %H:%M:%S',
        stream=getattr(opts, 'logfile', None), force=True,
    )
    return loglev
